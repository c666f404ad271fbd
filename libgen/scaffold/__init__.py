"""Library generators.

Each ``generate_*`` coroutine takes a filesystem adapter and its options
model, writes one library's source tree and returns a
:class:`GeneratorResult`.  Project files (package.json, tsconfig.json,
README.md, project.json) are written separately by
:func:`generate_infrastructure_files`.
"""

from libgen.scaffold.builder import ImportSpec, TemplateBuilder
from libgen.scaffold.common import GeneratorResult
from libgen.scaffold.contract_gen import ContractOptions, generate_contract
from libgen.scaffold.data_access_gen import DataAccessOptions, generate_data_access
from libgen.scaffold.feature_gen import FeatureOptions, generate_feature
from libgen.scaffold.infra_gen import InfraOptions, generate_infra
from libgen.scaffold.infrastructure import generate_infrastructure_files
from libgen.scaffold.provider_gen import ProviderOptions, generate_provider
from libgen.scaffold.templates import TemplateRenderer

__all__ = [
    "ContractOptions",
    "DataAccessOptions",
    "FeatureOptions",
    "GeneratorResult",
    "ImportSpec",
    "InfraOptions",
    "ProviderOptions",
    "TemplateBuilder",
    "TemplateRenderer",
    "generate_contract",
    "generate_data_access",
    "generate_feature",
    "generate_infra",
    "generate_infrastructure_files",
    "generate_provider",
]
