"""Runtime configuration and bundled recipe files."""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

ICON_STYLES_PATH = Path(__file__).parent / "config" / "icon_styles.yaml"

DEFAULT_TEXT_MODEL = "gpt-4o"
DEFAULT_IMAGE_MODEL = "gpt-image-1"
DEFAULT_DATA_DIR = Path.home() / ".aso_forge"
DEFAULT_SAVE_DEBOUNCE = 1.0

FALLBACK_ICON_STYLES: Dict[str, Any] = {
    "default": {"instruction": "STYLE: MODERN APP ICON. central logo mark."},
    "styles": {},
}


class ForgeConfig(BaseModel):
    """Settings resolved from the environment (and ``.env`` via the CLI)."""

    openai_api_key: Optional[str] = Field(None, description="OpenAI API key")
    text_model: str = Field(default=DEFAULT_TEXT_MODEL, description="Chat model for text and JSON")
    image_model: str = Field(default=DEFAULT_IMAGE_MODEL, description="Image generation model")
    data_dir: Path = Field(default=DEFAULT_DATA_DIR, description="Directory of the local project store")
    supabase_url: Optional[str] = Field(None, description="Remote project store URL")
    supabase_key: Optional[str] = Field(None, description="Remote project store API key")
    save_debounce: float = Field(default=DEFAULT_SAVE_DEBOUNCE, ge=0.0, description="Quiet period before saving")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ForgeConfig":
        """Build a config from environment variables; unset values keep their defaults."""
        env = os.environ if environ is None else environ

        values: Dict[str, Any] = {
            "openai_api_key": env.get("OPENAI_API_KEY") or None,
            "supabase_url": env.get("SUPABASE_URL") or None,
            "supabase_key": env.get("SUPABASE_KEY") or None,
        }
        if env.get("ASO_FORGE_TEXT_MODEL"):
            values["text_model"] = env["ASO_FORGE_TEXT_MODEL"]
        if env.get("ASO_FORGE_IMAGE_MODEL"):
            values["image_model"] = env["ASO_FORGE_IMAGE_MODEL"]
        if env.get("ASO_FORGE_DATA_DIR"):
            values["data_dir"] = Path(env["ASO_FORGE_DATA_DIR"]).expanduser()
        if env.get("ASO_FORGE_SAVE_DEBOUNCE"):
            values["save_debounce"] = float(env["ASO_FORGE_SAVE_DEBOUNCE"])

        return cls(**values)

    @property
    def has_remote_store(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)


def load_icon_styles(path: Path = ICON_STYLES_PATH) -> Dict[str, Any]:
    """Load icon style recipes, falling back to the generic recipe on any problem."""
    if not path.exists():
        logger.warning(f"Icon styles file not found at {path}. Using generic icon recipe.")
        return FALLBACK_ICON_STYLES
    try:
        with open(path, "r", encoding="utf-8") as f:
            styles = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Error loading icon styles from {path}: {e}. Using generic icon recipe.")
        return FALLBACK_ICON_STYLES

    if not isinstance(styles, dict) or not isinstance(styles.get("styles"), dict):
        logger.warning(f"Icon styles file at {path} is not a valid mapping. Using generic icon recipe.")
        return FALLBACK_ICON_STYLES

    logger.debug(f"Loaded {len(styles['styles'])} icon styles from {path}")
    return styles
