"""Credential shape checks.

These only tell whether a key is *plausible* for a provider. Whether the
provider accepts it is a network question, see ``BaseProvider.test_connection``.
"""

from __future__ import annotations

# provider → (required prefix, minimum length exclusive)
_RULES: dict[str, tuple[str, int]] = {
    "openai": ("sk-", 20),
    "claude": ("sk-ant-", 20),
    "gemini": ("", 10),
    "runware": ("", 10),
    "runway": ("", 10),
    "midjourney": ("", 10),
    "replicate": ("", 10),
    "heygen": ("", 10),
    "synthesia": ("", 10),
    "luma": ("", 10),
    "pika": ("", 10),
    "elevenlabs": ("", 10),
}


def validate_credential(provider: str, candidate: str | None) -> bool:
    """Return True when *candidate* looks like a valid key for *provider*.

    Claude keys must carry Anthropic's ``sk-ant-`` prefix. A bare ``sk-``
    key is an OpenAI key pasted into the wrong field and is rejected.
    """
    if not isinstance(candidate, str):
        return False
    key = candidate.strip()
    prefix, min_length = _RULES.get(provider, ("", 0))
    return key.startswith(prefix) and len(key) > min_length
