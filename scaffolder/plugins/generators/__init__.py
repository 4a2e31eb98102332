"""Plugin generators and their registration table.

``GENERATORS`` maps plugin ids to generator instances. The table is
read-only and the instances are shared across runs, which is only sound
because generators keep no state of their own.
"""

from collections.abc import Iterable, Mapping
from types import MappingProxyType

from .builtin import (
    BetterAuthGenerator,
    DockerGenerator,
    DrizzleGenerator,
    EslintGenerator,
    FumadocsGenerator,
    GithubActionsGenerator,
    JestGenerator,
    NextThemesGenerator,
    OrpcGenerator,
    PostgresqlGenerator,
    PrettierGenerator,
    PrismaGenerator,
    ReactQueryGenerator,
    RedisGenerator,
    SentryGenerator,
    ShadcnGenerator,
    SwaggerGenerator,
    TailwindGenerator,
    TurborepoGenerator,
    TypeScriptGenerator,
    VitestGenerator,
    ZodGenerator,
)
from .generator import (
    AbstractGenerator,
    DependencySpec,
    FileSpec,
    GeneratorContext,
    ScriptSpec,
)

BUILTIN_GENERATORS: tuple[AbstractGenerator, ...] = (
    TypeScriptGenerator(),
    EslintGenerator(),
    PrettierGenerator(),
    VitestGenerator(),
    JestGenerator(),
    TurborepoGenerator(),
    ZodGenerator(),
    DrizzleGenerator(),
    PrismaGenerator(),
    BetterAuthGenerator(),
    OrpcGenerator(),
    ReactQueryGenerator(),
    DockerGenerator(),
    PostgresqlGenerator(),
    RedisGenerator(),
    GithubActionsGenerator(),
    TailwindGenerator(),
    ShadcnGenerator(),
    NextThemesGenerator(),
    SentryGenerator(),
    SwaggerGenerator(),
    FumadocsGenerator(),
)


def build_generator_table(extra: Iterable[AbstractGenerator] = ()) -> Mapping[str, AbstractGenerator]:
    """Build a read-only plugin id -> generator table.

    Generators in *extra* replace built-ins with the same ``plugin_id``.
    """
    table = {g.plugin_id: g for g in BUILTIN_GENERATORS}
    for generator in extra:
        table[generator.plugin_id] = generator
    return MappingProxyType(table)


GENERATORS: Mapping[str, AbstractGenerator] = build_generator_table()


def get_generator(plugin_id: str, table: Mapping[str, AbstractGenerator] = GENERATORS) -> AbstractGenerator | None:
    return table.get(plugin_id)


__all__ = [
    "AbstractGenerator",
    "BUILTIN_GENERATORS",
    "DependencySpec",
    "FileSpec",
    "GENERATORS",
    "GeneratorContext",
    "ScriptSpec",
    "build_generator_table",
    "get_generator",
]
