"""Application configuration: settings schema and config.yaml loader"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field


CONFIG_FILE = "config.yaml"


class Site(BaseModel):
    """A WordPress site reachable with an application password."""
    name:                 str = "My WordPress Site"
    url:                  str
    username:             str = ""
    application_password: str = ""
    is_default:           bool = False


class Settings(BaseModel):
    app_name:          str = "wppub"
    sites:             list[Site] = Field(default_factory=list, description="Configured WordPress sites")
    default_post_type: str = Field(default="post",  pattern="^(post|page)$")
    default_status:    str = Field(default="draft", pattern="^(publish|draft|pending|private)$")
    convert_markdown:  bool = Field(default=True, description="Convert note bodies to HTML before sending")
    add_frontmatter_on_publish: bool = Field(default=True, description="Write post id/url/date back to the note")
    converter:     str = Field(default="simple", pattern="^(simple|markdown-it)$", description="simple or markdown-it")
    parser_config: str = Field(default="commonmark", pattern="^(commonmark|default|zero|gfm-like|js-default)$",
                               description="MarkdownIt preset name for the markdown-it converter")
    db_url:        str = "sqlite:///wppub.db"
    timeout:       float = Field(default=30.0, gt=0, description="HTTP timeout in seconds")
    log_level:     str = Field(default="WARNING", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")


# Fields that cannot be expressed as a single environment variable.
_NON_ENV_FIELDS = {"sites"}


def load_config(overrides: dict[str, Any] = None) -> Settings:
    """Load Settings from config.yaml, then WPPUB_<FIELD> env vars, then non-None CLI overrides."""
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {CONFIG_FILE}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Invalid {CONFIG_FILE}: expected a mapping, got {type(data).__name__}")

    for name in Settings.model_fields:
        if name in _NON_ENV_FIELDS:
            continue
        if val := os.getenv(f"WPPUB_{name.upper()}"):
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return Settings(**data)
    except ValueError as e:
        raise ValueError(f"Invalid configuration: {e}") from e
