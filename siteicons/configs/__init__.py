"""Configuration for siteicons"""

from pathlib import Path

from dynaconf import Dynaconf, Validator

# Validators for siteicons settings.
_validators = [
    Validator("logging.format", is_in=["mozlog", "pretty"]),
    Validator("logging.level", is_in=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    Validator("logging.can_propagate", is_type_of=bool),
    Validator("http.user_agent", is_type_of=str, must_exist=True),
    Validator("http.timeout_sec", is_type_of=(int, float), gt=0),
    # A prefix shorter than this cannot hold the ICO, BMP and WEBP headers.
    Validator("http.prefix_bytes", is_type_of=int, gte=32),
    Validator("http.max_page_bytes", is_type_of=int, gt=0),
    Validator("http.max_concurrency", is_type_of=int, gte=1),
    Validator("http.max_connections", is_type_of=int, gte=1),
]

# `root_path` = The directory holding the TOML files below, DO NOT CHANGE.
# `envvar_prefix` = Export envvars with `export SITEICONS_FOO=bar`.
# `settings_files` = Load these files in the order.
# `environments` = Enable layered environments such as `development`, `production`, `testing`.
# `env_switcher` = Switch environments by `export SITEICONS_ENV=production`.
#   Default: `development`.
# `merge_enabled` = Environment tables such as `[testing.http]` update `[default.http]`
#   instead of replacing it.
# `validators` = Define validators for siteicons settings.

settings = Dynaconf(
    root_path=str(Path(__file__).parent),
    envvar_prefix="SITEICONS",
    settings_files=[
        "default.toml",
        "development.toml",
        "production.toml",
        "testing.toml",
    ],
    environments=True,
    env_switcher="SITEICONS_ENV",
    validators=_validators,
    merge_enabled=True,
)
