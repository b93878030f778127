from functools import lru_cache
from pathlib import Path

PROMPTS_DIR = Path(__file__).parent.parent / "prompts"


@lru_cache(maxsize=None)
def load_prompt(name: str) -> str:
    """Read a prompt template from the prompts directory."""
    with open(PROMPTS_DIR / f"{name}.txt", 'r', encoding='utf-8') as prompt_file:
        return prompt_file.read().strip()
