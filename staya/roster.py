"""Key personnel roster.

A static, read-only catalog of the NPCs of the Volchya Staya. The roster is
shown during the briefing phase and summarised into the system instruction;
nothing mutates it at runtime.
"""

from staya.models import RosterEntry

KEY_PERSONNEL: tuple[RosterEntry, ...] = (
    RosterEntry(
        name="Volk",
        alias="Pakhan",
        role="Supreme leader",
        age="35",
        height="190cm",
        description=(
            "Ash-grey hair and grey eyes. Grew up in the slums and became the "
            "youngest Pakhan at 28. A cold ruler who enjoys silence and vodka "
            "and despises excuses."
        ),
        image="https://picsum.photos/id/64/400/600",
    ),
    RosterEntry(
        name="Igor Dmitrievich",
        alias="Sovetnik",
        role="Advisor and strategist",
        age="45",
        height="180cm",
        description=(
            "The only man Volk trusts. A cold analyst and a chess master who "
            "hides brutal logic behind an easy, sly manner."
        ),
        image="https://picsum.photos/id/65/400/600",
    ),
    RosterEntry(
        name="Nikolai Petrovich",
        alias="Vor",
        role="Head of combat",
        age="34",
        height="195cm",
        description=(
            "A huge, muscular hound. His scars and tattoos tell his record. "
            "Obeys Volk absolutely and carries out the execution of traitors."
        ),
        image="https://picsum.photos/id/66/400/600",
    ),
    RosterEntry(
        name="Takamiya Leon",
        alias="Head of the Black Eagles",
        role="Rival syndicate leader",
        age="32",
        height="185cm",
        description=(
            "Half Japanese, half Russian. As cold as Volk and crueller still. "
            "Locked in a fierce fight with the Volchya Staya over the arms "
            "market."
        ),
        image="https://picsum.photos/id/67/400/600",
    ),
)


def list_roster() -> list[RosterEntry]:
    return list(KEY_PERSONNEL)


def lookup(names: list[str]) -> list[RosterEntry]:
    """Return roster entries whose name or alias matches one of `names`.

    Matching is case-insensitive. Entries come back in roster order, each at
    most once.
    """
    wanted = {n.strip().lower() for n in names if n.strip()}
    found: list[RosterEntry] = []
    for entry in KEY_PERSONNEL:
        keys = {entry.name.lower()}
        if entry.alias:
            keys.add(entry.alias.lower())
        if keys & wanted:
            found.append(entry)
    return found


def roster_summary() -> str:
    """One line per NPC, used in the system instruction."""
    lines = []
    for entry in KEY_PERSONNEL:
        alias = f" ({entry.alias})" if entry.alias else ""
        lines.append(
            f"- {entry.name}{alias}, {entry.role}, {entry.age}, "
            f"{entry.height}: {entry.description}"
        )
    return "\n".join(lines)
