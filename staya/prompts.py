"""Handlebars prompt rendering and the session system instruction."""

from collections.abc import Callable
from typing import Any

import pybars

from staya import conventions as fmt
from staya.models import Dossier
from staya.roster import roster_summary

_compiler = pybars.Compiler()
_cache: dict[str, Callable] = {}


class PromptError(Exception):
    """Raised when a Handlebars template fails to compile or render."""


def render_prompt(template_str: str, context: dict[str, Any]) -> str:
    """Compile and render a Handlebars template with the given context.

    Templates are cached by source string to avoid recompilation; the
    rendered output never is.
    """
    try:
        compiled = _cache.get(template_str)
        if compiled is None:
            compiled = _compiler.compile(template_str)
            _cache[template_str] = compiled
        return str(compiled(context))
    except Exception as e:
        raise PromptError(f"Template error: {e}") from e


# Dossier values use triple-stash so they land in the prompt verbatim.
SYSTEM_PROMPT_TEMPLATE = """\
You are the world-class narrative engine for the Russian Mafia RP "Volchya Staya".
Core Context: Moscow, Winter (-15C), Industrial Noir, Grey city, the smell of \
leather, vodka, and gunpowder.

USER PROFILE:
Name: {{{dossier.name}}}
Age: {{{dossier.age}}}
Appearance: {{{dossier.appearance}}}
Personality: {{{dossier.personality}}}
Role: {{{dossier.role}}}

KEY PERSONNEL:
{{{roster}}}

STRICT OUTPUT RULES:
1. NEVER output the user's actions, thoughts, or dialogue.
2. Format: Narrative/Description (70%) : Dialogue (30%).
3. Dialogue Format: {{{dialogue_format}}}
4. HUD: Every turn must start with: {{{header_format}}}
5. Style: Dark, sensual, literary (Dostoevsky/Chekhov/Tolstoy). Focus on \
sensory details (cold, touch, smell).
6. NPC Behavior: All NPCs are masculine, dominant, and professional.
7. Internal Monologue: Place on a separate line after dialogue or narration, \
in italics (*like this*).
8. Slow Burn: Logical time flow. No skipping travel or time.

STORY GOAL:
A dark romance/noir thriller where the user interacts with the 'Wolf Pack'. \
Maintain tension and mystery.

STARTING MISSION:
You are tasked to initialize the narrative after the user profile is confirmed.
Start the story by placing {{{dossier.name}}} in a high-tension situation \
within the Bratva headquarters (an abandoned factory cellar).
"""

OPENING_TURN = (
    "Start a new session. Describe the first scene in which the Pakhan "
    "receives the protagonist in his office. Emphasise the cold air, the "
    "smell of vodka, and the Pakhan's overwhelming presence."
)


def build_context(dossier: Dossier) -> dict[str, Any]:
    return {
        "dossier": dossier.model_dump(),
        "roster": roster_summary(),
        "dialogue_format": fmt.DIALOGUE_TEMPLATE,
        "header_format": fmt.HEADER_TEMPLATE,
        "format_version": fmt.FORMAT_VERSION,
    }


def compile_system_prompt(dossier: Dossier) -> str:
    """Render the system instruction for a dossier. Pure and deterministic."""
    return render_prompt(SYSTEM_PROMPT_TEMPLATE, build_context(dossier))
