"""Built-in generators, one per plugin that produces output."""

import json

from scaffolder.core.commands import CommandSpec
from scaffolder.core.conditions import HasPlugin, NotHasPlugin
from scaffolder.core.guards import GuardSpec
from scaffolder.plugins.generators.generator import (
    AbstractGenerator,
    DependencySpec,
    FileSpec,
    GeneratorContext,
    ScriptSpec,
)


def _json(data: dict) -> str:
    return json.dumps(data, indent=2) + "\n"


# ------------------------------------------------------------------
# Core tooling
# ------------------------------------------------------------------
class TypeScriptGenerator(AbstractGenerator):
    plugin_id = "typescript"

    def get_files(self, ctx: GeneratorContext) -> list[FileSpec]:
        strict = ctx.plugin_config("typescript").get("strict", True)
        tsconfig = {
            "compilerOptions": {
                "target": "ES2022",
                "module": "ESNext",
                "moduleResolution": "Bundler",
                "strict": strict,
                "esModuleInterop": True,
                "skipLibCheck": True,
                "resolveJsonModule": True,
                "outDir": "dist",
            },
            "include": ["src"],
            "exclude": ["node_modules", "dist"],
        }
        return [FileSpec("tsconfig.json", _json(tsconfig))]

    def get_dependencies(self, ctx: GeneratorContext) -> list[DependencySpec]:
        return [
            DependencySpec("typescript", ctx.version("typescript", "^5.0.0"), "dev"),
            DependencySpec("@types/node", "^20.0.0", "dev"),
        ]

    def get_scripts(self, ctx: GeneratorContext) -> list[ScriptSpec]:
        return [ScriptSpec("typecheck", "tsc --noEmit", "Type-check the project")]


class EslintGenerator(AbstractGenerator):
    plugin_id = "eslint"

    CONFIG = """import js from "@eslint/js";
import tseslint from "typescript-eslint";

const configs = [
  js.configs.recommended,
  ...tseslint.configs.recommended,
];

export default configs;
"""

    def get_files(self, ctx: GeneratorContext) -> list[FileSpec]:
        files = [FileSpec("eslint.config.js", self.CONFIG)]
        # Hand formatting over to prettier when both are enabled
        files.append(FileSpec(
            "eslint.config.js",
            'import prettier from "eslint-config-prettier";',
            merge_strategy="ast-transform",
            ast_transform="add-import",
            priority=35,
            condition=HasPlugin("prettier"),
        ))
        files.append(FileSpec(
            "eslint.config.js",
            "configs:prettier",
            merge_strategy="ast-transform",
            ast_transform="add-array-item",
            priority=36,
            condition=HasPlugin("prettier"),
        ))
        return files

    def get_dependencies(self, ctx: GeneratorContext) -> list[DependencySpec]:
        deps = [
            DependencySpec("eslint", ctx.version("eslint", "^9.0.0"), "dev"),
            DependencySpec("@eslint/js", "^9.0.0", "dev"),
            DependencySpec("typescript-eslint", "^8.0.0", "dev"),
        ]
        if ctx.has("prettier"):
            deps.append(DependencySpec("eslint-config-prettier", "^9.0.0", "dev"))
        return deps

    def get_scripts(self, ctx: GeneratorContext) -> list[ScriptSpec]:
        return [ScriptSpec("lint", "eslint .", "Lint the project")]


class PrettierGenerator(AbstractGenerator):
    plugin_id = "prettier"

    def get_files(self, ctx: GeneratorContext) -> list[FileSpec]:
        return [
            FileSpec(".prettierrc.json", _json({"semi": True, "singleQuote": False, "printWidth": 100})),
            FileSpec(".prettierignore", "node_modules\ndist\ncoverage\n", merge_strategy="line-merge"),
        ]

    def get_dependencies(self, ctx: GeneratorContext) -> list[DependencySpec]:
        return [DependencySpec("prettier", ctx.version("prettier", "^3.0.0"), "dev")]

    def get_scripts(self, ctx: GeneratorContext) -> list[ScriptSpec]:
        return [ScriptSpec("format", "prettier --write .", "Format the project")]


class VitestGenerator(AbstractGenerator):
    plugin_id = "vitest"

    def get_files(self, ctx: GeneratorContext) -> list[FileSpec]:
        config = """import { defineConfig } from "vitest/config";

export default defineConfig({
  test: {
    environment: "node",
    coverage: { provider: "v8" },
  },
});
"""
        return [FileSpec("vitest.config.ts", config)]

    def get_dependencies(self, ctx: GeneratorContext) -> list[DependencySpec]:
        version = ctx.version("vitest", "^2.0.0")
        return [
            DependencySpec("vitest", version, "dev"),
            DependencySpec("@vitest/coverage-v8", version, "dev"),
        ]

    def get_scripts(self, ctx: GeneratorContext) -> list[ScriptSpec]:
        return [
            ScriptSpec("test", "vitest run", "Run unit tests"),
            ScriptSpec("test:watch", "vitest", "Run unit tests in watch mode"),
        ]


class JestGenerator(AbstractGenerator):
    plugin_id = "jest"

    def get_files(self, ctx: GeneratorContext) -> list[FileSpec]:
        preset = "ts-jest" if ctx.has("typescript") else None
        config = {"testEnvironment": "node"}
        if preset:
            config["preset"] = preset
        return [FileSpec("jest.config.json", _json(config))]

    def get_dependencies(self, ctx: GeneratorContext) -> list[DependencySpec]:
        deps = [DependencySpec("jest", ctx.version("jest", "^29.0.0"), "dev")]
        if ctx.has("typescript"):
            deps += [DependencySpec("ts-jest", "^29.0.0", "dev"), DependencySpec("@types/jest", "^29.0.0", "dev")]
        return deps

    def get_scripts(self, ctx: GeneratorContext) -> list[ScriptSpec]:
        return [ScriptSpec("test", "jest", "Run unit tests")]


class TurborepoGenerator(AbstractGenerator):
    plugin_id = "turborepo"

    def get_files(self, ctx: GeneratorContext) -> list[FileSpec]:
        turbo = {
            "$schema": "https://turbo.build/schema.json",
            "tasks": {
                "build": {"dependsOn": ["^build"], "outputs": ["dist/**", ".next/**"]},
                "dev": {"cache": False, "persistent": True},
                "lint": {},
                "test": {},
            },
        }
        return [FileSpec("turbo.json", _json(turbo))]

    def get_dependencies(self, ctx: GeneratorContext) -> list[DependencySpec]:
        return [DependencySpec("turbo", "^2.0.0", "dev")]

    def get_scripts(self, ctx: GeneratorContext) -> list[ScriptSpec]:
        return [ScriptSpec("build", "turbo run build"), ScriptSpec("dev", "turbo run dev")]


class ZodGenerator(AbstractGenerator):
    plugin_id = "zod"

    def get_files(self, ctx: GeneratorContext) -> list[FileSpec]:
        env = """import { z } from "zod";

export const envSchema = z.object({
  NODE_ENV: z.enum(["development", "test", "production"]).default("development"),
});

export const env = envSchema.parse(process.env);
"""
        return [FileSpec("src/env.ts", env, skip_if_exists=True)]

    def get_dependencies(self, ctx: GeneratorContext) -> list[DependencySpec]:
        return [DependencySpec("zod", ctx.version("zod", "^3.23.0"), "prod")]


# ------------------------------------------------------------------
# Database / features
# ------------------------------------------------------------------
class DrizzleGenerator(AbstractGenerator):
    plugin_id = "drizzle"

    def get_files(self, ctx: GeneratorContext) -> list[FileSpec]:
        dialect = "postgresql" if ctx.has("postgresql") else "sqlite"
        config = f"""import {{ defineConfig }} from "drizzle-kit";

export default defineConfig({{
  schema: "./src/db/schema.ts",
  out: "./drizzle",
  dialect: "{dialect}",
  dbCredentials: {{ url: process.env.DATABASE_URL! }},
}});
"""
        schema = """import { pgTable, serial, text, timestamp } from "drizzle-orm/pg-core";

export const users = pgTable("users", {
  id: serial("id").primaryKey(),
  email: text("email").notNull().unique(),
  createdAt: timestamp("created_at").defaultNow().notNull(),
});
"""
        return [
            FileSpec("drizzle.config.ts", config),
            FileSpec("src/db/schema.ts", schema, skip_if_exists=True),
            FileSpec("src/db/index.ts", 'export * from "./schema";\n'),
        ]

    def get_dependencies(self, ctx: GeneratorContext) -> list[DependencySpec]:
        deps = [
            DependencySpec("drizzle-orm", ctx.version("drizzle", "^0.40.0"), "prod"),
            DependencySpec("drizzle-kit", "^0.30.0", "dev"),
        ]
        if ctx.has("postgresql"):
            deps.append(DependencySpec("pg", "^8.12.0", "prod"))
        return deps

    def get_scripts(self, ctx: GeneratorContext) -> list[ScriptSpec]:
        return [
            ScriptSpec("db:generate", "drizzle-kit generate", "Generate SQL migrations"),
            ScriptSpec("db:migrate", "drizzle-kit migrate", "Apply migrations"),
            ScriptSpec("db:studio", "drizzle-kit studio", "Open Drizzle Studio"),
        ]

    def get_commands(self, ctx: GeneratorContext) -> list[CommandSpec]:
        return [CommandSpec("Generate initial migration", "npx", ["drizzle-kit", "generate"], priority=200)]


class PrismaGenerator(AbstractGenerator):
    plugin_id = "prisma"

    def get_files(self, ctx: GeneratorContext) -> list[FileSpec]:
        provider = "postgresql" if ctx.has("postgresql") else "sqlite"
        schema = f"""generator client {{
  provider = "prisma-client-js"
}}

datasource db {{
  provider = "{provider}"
  url      = env("DATABASE_URL")
}}
"""
        return [FileSpec("prisma/schema.prisma", schema, skip_if_exists=True)]

    def get_dependencies(self, ctx: GeneratorContext) -> list[DependencySpec]:
        version = ctx.version("prisma", "^6.0.0")
        return [DependencySpec("@prisma/client", version, "prod"), DependencySpec("prisma", version, "dev")]

    def get_scripts(self, ctx: GeneratorContext) -> list[ScriptSpec]:
        return [ScriptSpec("db:generate", "prisma generate"), ScriptSpec("db:migrate", "prisma migrate dev")]

    def get_commands(self, ctx: GeneratorContext) -> list[CommandSpec]:
        return [CommandSpec("Generate Prisma client", "npx", ["prisma", "generate"], priority=200)]


class BetterAuthGenerator(AbstractGenerator):
    plugin_id = "better-auth"

    AUTH = """import { betterAuth } from "better-auth";
import { drizzleAdapter } from "better-auth/adapters/drizzle";
import { db } from "../db";

export const auth = betterAuth({
  database: drizzleAdapter(db, { provider: "pg" }),
  emailAndPassword: { enabled: true },
});
"""

    def get_files(self, ctx: GeneratorContext) -> list[FileSpec]:
        return [FileSpec("src/lib/auth.ts", self.AUTH)]

    def get_dependencies(self, ctx: GeneratorContext) -> list[DependencySpec]:
        return [DependencySpec("better-auth", ctx.version("better-auth", "^1.3.0"), "prod")]

    def get_guards(self, ctx: GeneratorContext) -> list[GuardSpec]:
        return [GuardSpec(
            "Better Auth requires a database",
            "plugin",
            {"plugin_id": "drizzle", "mode": "enabled"},
            plugin_id=self.plugin_id,
        )]


class OrpcGenerator(AbstractGenerator):
    plugin_id = "orpc"

    def get_files(self, ctx: GeneratorContext) -> list[FileSpec]:
        router = """import { os } from "@orpc/server";
import { z } from "zod";

export const router = {
  health: os.input(z.object({})).handler(() => ({ status: "ok" })),
};
"""
        return [FileSpec("src/rpc/router.ts", router, skip_if_exists=True)]

    def get_dependencies(self, ctx: GeneratorContext) -> list[DependencySpec]:
        version = ctx.version("orpc", "^1.7.0")
        return [DependencySpec("@orpc/server", version, "prod"), DependencySpec("@orpc/client", version, "prod")]


class ReactQueryGenerator(AbstractGenerator):
    plugin_id = "react-query"

    def get_files(self, ctx: GeneratorContext) -> list[FileSpec]:
        client = """import { QueryClient } from "@tanstack/react-query";

export const queryClient = new QueryClient();
"""
        return [FileSpec("src/lib/query-client.ts", client)]

    def get_dependencies(self, ctx: GeneratorContext) -> list[DependencySpec]:
        return [DependencySpec("@tanstack/react-query", ctx.version("react-query", "^5.0.0"), "prod")]


# ------------------------------------------------------------------
# Infrastructure
# ------------------------------------------------------------------
class DockerGenerator(AbstractGenerator):
    plugin_id = "docker"

    DOCKERFILE = """FROM node:20-alpine AS base
WORKDIR /app
COPY package.json ./
RUN {{ project.package_manager }} install
COPY . .
EXPOSE {{ project.ports.api }}
CMD ["{{ project.package_manager }}", "run", "start"]
"""

    def get_files(self, ctx: GeneratorContext) -> list[FileSpec]:
        compose_app = """  app:
    build: .
    ports:
      - "{{ project.ports.api }}:{{ project.ports.api }}"
    env_file: .env"""
        return [
            FileSpec("Dockerfile", self.DOCKERFILE, template=True),
            FileSpec("docker-compose.yml", "services:\n", priority=490),
            FileSpec("docker-compose.yml", compose_app, template=True, merge_strategy="section-merge", section="app"),
            FileSpec(".dockerignore", "node_modules\ndist\n.env\n.git\n", merge_strategy="line-merge"),
        ]

    def get_scripts(self, ctx: GeneratorContext) -> list[ScriptSpec]:
        return [ScriptSpec("docker:up", "docker compose up -d"), ScriptSpec("docker:down", "docker compose down")]

    def get_guards(self, ctx: GeneratorContext) -> list[GuardSpec]:
        return [GuardSpec(
            "Docker available",
            "command",
            {"command": "docker", "args": ["--version"]},
            optional=True,
            plugin_id=self.plugin_id,
        )]


class PostgresqlGenerator(AbstractGenerator):
    plugin_id = "postgresql"

    def get_files(self, ctx: GeneratorContext) -> list[FileSpec]:
        service = """  postgres:
    image: postgres:16-alpine
    environment:
      POSTGRES_USER: postgres
      POSTGRES_PASSWORD: postgres
      POSTGRES_DB: {{ project.name | snake_case }}
    ports:
      - "{{ project.ports.db }}:5432\""""
        return [FileSpec(
            "docker-compose.yml", service, template=True, merge_strategy="section-merge", section="postgres", priority=505,
            condition=HasPlugin("docker"),
        )]


class RedisGenerator(AbstractGenerator):
    plugin_id = "redis"

    def get_files(self, ctx: GeneratorContext) -> list[FileSpec]:
        service = """  redis:
    image: redis:7-alpine
    ports:
      - "{{ project.ports.redis }}:6379\""""
        client = """import Redis from "ioredis";

export const redis = new Redis(process.env.REDIS_URL ?? "redis://localhost:6379");
"""
        return [
            FileSpec("docker-compose.yml", service, template=True, merge_strategy="section-merge", section="redis", priority=506,
                     condition=HasPlugin("docker")),
            FileSpec("src/lib/redis.ts", client),
        ]

    def get_dependencies(self, ctx: GeneratorContext) -> list[DependencySpec]:
        return [DependencySpec("ioredis", "^5.4.0", "prod")]


class GithubActionsGenerator(AbstractGenerator):
    plugin_id = "github-actions"

    WORKFLOW = """name: CI

on:
  push:
    branches: [main]
  pull_request:

jobs:
  check:
    runs-on: ubuntu-latest
    steps:
      - uses: actions/checkout@v4
      - uses: actions/setup-node@v4
        with:
          node-version: 20
      - run: {{ project.package_manager }} install
{%- if has.eslint %}
      - run: {{ project.package_manager }} run lint
{%- endif %}
{%- if has.typescript %}
      - run: {{ project.package_manager }} run typecheck
{%- endif %}
{%- if has.vitest or has.jest %}
      - run: {{ project.package_manager }} run test
{%- endif %}
"""

    def get_files(self, ctx: GeneratorContext) -> list[FileSpec]:
        return [FileSpec(".github/workflows/ci.yml", self.WORKFLOW, template=True)]


# ------------------------------------------------------------------
# UI
# ------------------------------------------------------------------
class TailwindGenerator(AbstractGenerator):
    plugin_id = "tailwindcss"

    def get_files(self, ctx: GeneratorContext) -> list[FileSpec]:
        return [
            FileSpec("src/styles/globals.css", '@import "tailwindcss";\n'),
            FileSpec("postcss.config.mjs", 'export default { plugins: { "@tailwindcss/postcss": {} } };\n'),
        ]

    def get_dependencies(self, ctx: GeneratorContext) -> list[DependencySpec]:
        version = ctx.version("tailwindcss", "^4.0.0")
        return [
            DependencySpec("tailwindcss", version, "dev"),
            DependencySpec("@tailwindcss/postcss", version, "dev"),
        ]


class ShadcnGenerator(AbstractGenerator):
    plugin_id = "shadcn-ui"

    def get_files(self, ctx: GeneratorContext) -> list[FileSpec]:
        components = {
            "$schema": "https://ui.shadcn.com/schema.json",
            "style": "new-york",
            "tsx": ctx.has("typescript"),
            "tailwind": {"css": "src/styles/globals.css", "cssVariables": True},
            "aliases": {"components": "@/components", "utils": "@/lib/utils"},
        }
        utils = """import { clsx, type ClassValue } from "clsx";
import { twMerge } from "tailwind-merge";

export function cn(...inputs: ClassValue[]) {
  return twMerge(clsx(inputs));
}
"""
        theme = """:root {
  --radius: 0.625rem;
}
"""
        return [
            FileSpec("components.json", _json(components)),
            FileSpec("src/lib/utils.ts", utils),
            FileSpec("src/styles/globals.css", theme),
        ]

    def get_dependencies(self, ctx: GeneratorContext) -> list[DependencySpec]:
        return [DependencySpec("clsx", "^2.1.0", "prod"), DependencySpec("tailwind-merge", "^2.5.0", "prod")]

    def get_commands(self, ctx: GeneratorContext) -> list[CommandSpec]:
        return [CommandSpec("Initialize shadcn/ui", "npx", ["shadcn@latest", "init", "-y", "-d"], priority=410)]


class NextThemesGenerator(AbstractGenerator):
    plugin_id = "next-themes"

    def get_files(self, ctx: GeneratorContext) -> list[FileSpec]:
        provider = """"use client";

export { ThemeProvider } from "next-themes";
"""
        return [FileSpec("src/components/theme-provider.tsx", provider)]

    def get_dependencies(self, ctx: GeneratorContext) -> list[DependencySpec]:
        return [DependencySpec("next-themes", "^0.4.0", "prod")]


# ------------------------------------------------------------------
# Integrations
# ------------------------------------------------------------------
class SentryGenerator(AbstractGenerator):
    plugin_id = "sentry"

    def get_files(self, ctx: GeneratorContext) -> list[FileSpec]:
        init = """import * as Sentry from "@sentry/node";

Sentry.init({ dsn: process.env.SENTRY_DSN, tracesSampleRate: 1.0 });
"""
        return [FileSpec("src/instrument.ts", init)]

    def get_dependencies(self, ctx: GeneratorContext) -> list[DependencySpec]:
        return [DependencySpec("@sentry/node", "^8.0.0", "prod")]


class SwaggerGenerator(AbstractGenerator):
    plugin_id = "swagger"

    def get_files(self, ctx: GeneratorContext) -> list[FileSpec]:
        spec = {
            "openapi": "3.1.0",
            "info": {"title": ctx.project.name, "version": "0.1.0"},
            "paths": {},
        }
        return [FileSpec("openapi.json", _json(spec), merge_strategy="json-merge-deep")]


class FumadocsGenerator(AbstractGenerator):
    plugin_id = "fumadocs"

    def get_files(self, ctx: GeneratorContext) -> list[FileSpec]:
        index = """---
title: {{ project.name }}
description: {{ project.description or "Project documentation" }}
---

Welcome to the {{ project.name }} documentation.
"""
        return [
            FileSpec("content/docs/index.mdx", index, template=True, skip_if_exists=True),
            FileSpec("src/styles/globals.css", '@import "fumadocs-ui/css/preset.css";\n',
                     condition=HasPlugin("tailwindcss")),
            FileSpec("src/styles/docs.css", '@import "fumadocs-ui/style.css";\n',
                     condition=NotHasPlugin("tailwindcss")),
        ]

    def get_dependencies(self, ctx: GeneratorContext) -> list[DependencySpec]:
        return [
            DependencySpec("fumadocs-core", "^15.0.0", "prod"),
            DependencySpec("fumadocs-ui", "^15.0.0", "prod"),
        ]
