"""
Prompt template manager.

Loads prompt templates shipped in ``studyhelper/prompts`` and fills
``{{VARIABLE}}`` placeholders.
"""

import logging
import re
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_PROMPTS_DIR = Path(__file__).resolve().parent.parent / "prompts"


class PromptManager:
    """
    Manages prompt templates with variable substitution.
    
    Example:
        manager = PromptManager()
        prompt = manager.load_prompt("quiz_multiple_choice", TOPIC="Recursion", ...)
    """
    
    def __init__(self, prompts_dir: Optional[Path] = None):
        self.prompts_dir = Path(prompts_dir) if prompts_dir else DEFAULT_PROMPTS_DIR
        self._cache: Dict[str, str] = {}
        
        if not self.prompts_dir.exists():
            logger.warning(f"Prompts directory not found: {self.prompts_dir}")
    
    def load_prompt(self, name: str, **kwargs) -> str:
        """
        Load and format a prompt template.
        
        Args:
            name: Prompt template name (without .txt extension)
            **kwargs: Variables to substitute in the template
        """
        template = self._load_template(name)
        return self._substitute_variables(template, kwargs)
    
    def _load_template(self, name: str) -> str:
        if name in self._cache:
            return self._cache[name]
        
        template_file = self.prompts_dir / f"{name}.txt"
        
        if not template_file.exists():
            raise FileNotFoundError(
                f"Prompt template not found: {template_file}\n"
                f"Available templates: {self.list_templates()}"
            )
        
        template = template_file.read_text(encoding='utf-8')
        self._cache[name] = template
        logger.debug(f"Loaded prompt template: {name}")
        return template
    
    def _substitute_variables(self, template: str, variables: Dict[str, Any]) -> str:
        """
        Substitute variables in template.
        
        Variables use {{VARIABLE_NAME}} syntax. Substitution is a single pass
        over the template, so placeholder-like text inside a value (for example
        a student's answer) is left alone.
        """
        def replace(match: re.Match) -> str:
            key = match.group(1)
            if key in variables:
                return str(variables[key])
            return match.group(0)
        
        result = re.sub(r'\{\{(\w+)\}\}', replace, template)
        
        unsubstituted = [k for k in re.findall(r'\{\{(\w+)\}\}', template) if k not in variables]
        if unsubstituted:
            logger.warning(f"Unsubstituted variables in template: {unsubstituted}")
        
        return result
    
    def reload(self, name: Optional[str] = None):
        """Drop cached templates so they are read from disk again."""
        if name:
            self._cache.pop(name, None)
            logger.info(f"Reloaded template: {name}")
        else:
            self._cache.clear()
            logger.info("Reloaded all templates")
    
    def list_templates(self) -> list[str]:
        if not self.prompts_dir.exists():
            return []
        return sorted(f.stem for f in self.prompts_dir.glob("*.txt"))


_prompt_manager: Optional[PromptManager] = None


def get_prompt_manager() -> PromptManager:
    """Get global PromptManager instance (singleton)."""
    global _prompt_manager
    if _prompt_manager is None:
        _prompt_manager = PromptManager()
    return _prompt_manager


def load_prompt(name: str, **kwargs) -> str:
    """Load a prompt template (convenience function)."""
    return get_prompt_manager().load_prompt(name, **kwargs)
