"""Monolaunch -- scaffold Next.js + Supabase projects from the command line.

Two project shapes are supported: a single Next.js web application, or a
pnpm monorepo holding a Next.js web app, an Expo mobile app and a shared
TypeScript package.  Each can be generated ``bare`` (framework defaults plus
the Supabase wiring) or ``opinionated`` (UI components, Zod, Legend State,
Prettier).

Quick usage::

    $ monolaunch my-app -t opinionated -a monorepo
    $ monolaunch my-app --template bare --architecture nextjs-only --dry-run
"""

__version__ = "1.0.0"
