"""Output-format contract shared by the prompt compiler and the parser.

The compiler instructs the model to emit these markers; the narrative
parser classifies lines by them. Bump FORMAT_VERSION whenever a marker
changes so both sides move together.

  header     `T3｜2024/01/12/Friday｜23:40｜Winter｜Snow❄️｜Factory cellar🏭`
  dialogue   **Volk |** 「Тихо.」 (Quiet.)
  monologue  *He is lying.*   (own line, wrapped in a delimiter pair)
"""

FORMAT_VERSION = 1

HEADER_SEPARATOR = "｜"  # full-width; the ASCII bar is accepted on parse
HEADER_FIELDS = ("date", "time", "season", "weather", "location")
HEADER_TEMPLATE = "`T?｜YYYY/MM/DD/Weekday｜HH:mm｜Season｜Weather(Emoji)｜Location(Emoji)`"

DIALOGUE_SEPARATOR = "|"
DIALOGUE_TEMPLATE = "**Name |** 「Russian」 (Translation)"

# (open, close) pairs; a line wrapped in one of them is internal monologue
MONOLOGUE_DELIMITERS: tuple[tuple[str, str], ...] = (
    ("*", "*"),
    ("_", "_"),
    ("(", ")"),
    ("[", "]"),
    ("『", "』"),
)
