"""
Centralized Configuration for SFL Studio

Manages environment variables, model defaults and search credential fallbacks.
Interactive settings (model, thinking budget, temperature, search keys) live in
each session; the values here are only the process-wide defaults.
"""

import os
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv

load_dotenv()


AVAILABLE_MODELS: List[Dict] = [
    {
        "id": "gemini-2.5-flash",
        "name": "Gemini 2.5 Flash",
        "has_thinking": True,
        "description": "A fast and versatile model, adept at a wide range of tasks from analysis to creative generation.",
    },
    {
        "id": "gemini-3-pro-preview",
        "name": "Gemini 3 Pro (Preview)",
        "has_thinking": True,
        "description": "Excellent for complex reasoning and nuanced persona emulation.",
    },
]


class StudioConfig:
    """Central configuration for SFL Studio paths and settings."""

    def __init__(self, root_dir: Optional[Path] = None):
        """
        Initialize configuration.

        Args:
            root_dir: Root directory of the project.
                     If None, auto-detects based on this file's location.
        """
        if root_dir is None:
            self._root_dir = Path(__file__).parent.parent.resolve()
        else:
            self._root_dir = Path(root_dir).resolve()

    @property
    def root_dir(self) -> Path:
        """Root directory of the project."""
        return self._root_dir

    @property
    def log_dir(self) -> Path:
        """Directory for rotating log files."""
        custom_path = os.getenv("SFL_STUDIO_LOG_DIR")
        if custom_path:
            return Path(custom_path).resolve()
        return self._root_dir / "logs"

    @property
    def gemini_api_key(self) -> str:
        """API key for the generative model."""
        return (
            os.getenv("GEMINI_API_KEY")
            or os.getenv("GOOGLE_GENAI_API_KEY")
            or os.getenv("API_KEY")
            or ""
        )

    @property
    def google_api_key(self) -> str:
        """Default Custom Search API key when the session leaves it blank."""
        return os.getenv("GOOGLE_API_KEY", "")

    @property
    def google_cse_id(self) -> str:
        """Default Custom Search engine id (cx) when the session leaves it blank."""
        return os.getenv("GOOGLE_CSE_ID", "")

    @property
    def default_model(self) -> str:
        return os.getenv("SFL_STUDIO_DEFAULT_MODEL", AVAILABLE_MODELS[0]["id"])

    @property
    def media_model(self) -> str:
        """Model variant forced whenever a request carries video or image parts."""
        return os.getenv("SFL_STUDIO_MEDIA_MODEL", "gemini-2.5-flash")

    @property
    def default_thinking_budget(self) -> Optional[int]:
        raw = os.getenv("SFL_STUDIO_THINKING_BUDGET", "100").strip()
        try:
            budget = int(raw)
        except ValueError:
            return None
        return budget if budget >= 0 else None

    @property
    def host(self) -> str:
        return os.getenv("SFL_STUDIO_HOST", "0.0.0.0")

    @property
    def port(self) -> int:
        return int(os.getenv("SFL_STUDIO_PORT", "8003"))

    def get_model_info(self, model_id: str) -> Optional[Dict]:
        """
        Look up a model in AVAILABLE_MODELS.

        Args:
            model_id: Model identifier

        Returns:
            Model description dict, or None for unknown ids
        """
        return next((m for m in AVAILABLE_MODELS if m["id"] == model_id), None)

    def __repr__(self) -> str:
        return (
            f"StudioConfig(\n"
            f"  root_dir={self.root_dir},\n"
            f"  log_dir={self.log_dir},\n"
            f"  default_model={self.default_model},\n"
            f"  media_model={self.media_model}\n"
            f")"
        )


# Global config instance
# Import this in other modules: from sfl_studio.config import config
config = StudioConfig()
