# /aria-backend/app/services/mode_service.py

"""
Server-side chat mode presets.

Each mode pairs a system prompt, a model and a temperature. Every field can be
overridden through `MODE_<ID>_SYSTEM_PROMPT`, `MODE_<ID>_MODEL` and
`MODE_<ID>_TEMPERATURE`, which arrive here as `Settings.mode_overrides`.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

from ..core.config import DEFAULT_OPENROUTER_MODEL, get_settings

DEFAULT_MODE = "default"


@dataclass(frozen=True)
class ModeConfig:
    system_prompt: str
    model: str
    temperature: float


# (built-in system prompt, built-in temperature); None means "use the default".
_MODE_PRESETS: Dict[str, tuple] = {
    "default": (None, None),
    "creative": (None, 1.2),
    "precise": (None, 0.3),
    "coder": ("You are an expert software engineer. Provide clear, concise code solutions with explanations.", None),
    "analyst": ("You are a data analyst. Provide detailed analysis with insights and recommendations.", None),
    "voice": (
        "You are a conversational AI assistant. Keep your responses conversational, friendly, and engaging. "
        "Respond naturally as if in a spoken conversation, not writing an essay. "
        "Keep responses reasonably brief but complete.",
        0.8,
    ),
}


def _override_float(overrides: Dict[str, str], name: str) -> Optional[float]:
    raw = overrides.get(name)
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    # A zero temperature in the environment counts as "unset".
    return value or None


def list_modes() -> List[str]:
    return list(_MODE_PRESETS.keys())


def get_mode_config(
    mode_id: Optional[str],
    default_model: str = DEFAULT_OPENROUTER_MODEL,
    overrides: Optional[Dict[str, str]] = None,
) -> ModeConfig:
    """Resolves a mode id to its preset. Unknown ids fall back to the default mode."""
    if overrides is None:
        overrides = get_settings().mode_overrides
    default_prompt = overrides.get("MODE_DEFAULT_SYSTEM_PROMPT", "")
    default_model = overrides.get("MODE_DEFAULT_MODEL") or default_model
    default_temperature = _override_float(overrides, "MODE_DEFAULT_TEMPERATURE") or 0.7

    mode_id = (mode_id or DEFAULT_MODE).lower()
    if mode_id not in _MODE_PRESETS:
        return ModeConfig(system_prompt=default_prompt, model=default_model, temperature=default_temperature)

    builtin_prompt, builtin_temperature = _MODE_PRESETS[mode_id]
    prefix = f"MODE_{mode_id.upper()}_"
    return ModeConfig(
        system_prompt=overrides.get(prefix + "SYSTEM_PROMPT") or builtin_prompt or default_prompt,
        model=overrides.get(prefix + "MODEL") or default_model,
        temperature=_override_float(overrides, prefix + "TEMPERATURE") or builtin_temperature or default_temperature,
    )
