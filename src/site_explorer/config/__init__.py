"""Configuration package for site-explorer.

Sub-modules:
    parsing  – Boolean/number parsing helpers
    domains  – SessionSettings, DirectorySettings, StorageSettings, [license] parsing
    explorer – ExplorerConfig dataclass, get_config/set_config globals
    loader   – ExplorerConfig loading mixin (_ExplorerConfigLoader)
"""

from site_explorer.config.domains import (  # noqa: F401
    DirectorySettings,
    SessionSettings,
    StorageSettings,
    license_settings_from_toml_dict,
)
from site_explorer.config.explorer import (  # noqa: F401
    ExplorerConfig,
    get_config,
    set_config,
)
from site_explorer.config.parsing import (  # noqa: F401
    _try_parse_bool,
)
from site_explorer.core.license.validator import LicenseSettings  # noqa: F401
