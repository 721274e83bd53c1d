"""
mlog Language Constants
=======================

Fixed facts about the mlog language and the Mindustry logic processor that
the analyzers rely on: processor limits, special variables, keywords, the
named colors accepted in string color tags and the building names that may
appear as link variables (``cell1``, ``message2``, ...).
"""

import re


# =============================================================================
# Processor Limits
# =============================================================================

MAX_LABEL_COUNT = 500
MAX_INSTRUCTION_COUNT = 1000

# A statement may hold at most this many tokens
MAX_TOKENS_PER_LINE = 16


# =============================================================================
# Special Variables and Keywords
# =============================================================================

COUNTER_VAR = "@counter"
WAIT_VAR = "@wait"

# Written to discard an output value; never reported as unused
DISCARD_VAR = "_"

KEYWORDS = frozenset({"true", "false", "null"})

# Jump condition that makes a jump unconditional
ALWAYS_CONDITION = "always"

JUMP_CONDITIONS = frozenset({
    "equal",
    "notEqual",
    "lessThan",
    "lessThanEq",
    "greaterThan",
    "greaterThanEq",
    "strictEqual",
    ALWAYS_CONDITION,
})

# Names renamed by the game when a program is loaded
LEGACY_OP_NAMES = {
    "atan2": "angle",
    "dst": "len",
}

LEGACY_OPERAND_NAMES = {
    "configure": "config",
    "@configure": "@config",
}


# =============================================================================
# Named Colors
# =============================================================================
# Accepted inside string color tags ("[red]text") and named color literals
# (%[red]). Lookup is case-insensitive, like the game's markup parser.

COLOR_NAMES = frozenset({
    "clear", "black", "white", "lightgray", "gray", "darkgray",
    "blue", "navy", "royal", "slate", "sky", "cyan", "teal",
    "green", "acid", "lime", "forest", "olive",
    "yellow", "gold", "goldenrod", "orange",
    "brown", "tan", "brick",
    "red", "scarlet", "crimson", "coral", "salmon", "pink", "magenta",
    "purple", "violet", "maroon",
    # Mindustry UI palette
    "accent", "unlaunched", "highlight", "stat", "negstat",
})


# =============================================================================
# Building Links
# =============================================================================
# A processor sees every linked building as a variable named after the
# block plus a number. These names are never written by the program itself.

BUILDING_LINK_NAMES = frozenset({
    "arc", "bank", "battery", "cell", "conduit", "container", "conveyor",
    "core", "cultivator", "cyclone", "diode", "disassembler", "display",
    "door", "drill", "duct", "duo", "factory", "foreshadow", "fuse", "gate",
    "generator", "hail", "illuminator", "incinerator", "junction", "kiln",
    "lancer", "laser", "meltdown", "melter", "memory", "mender", "message",
    "mixer", "node", "overflow", "panel", "point", "press", "processor",
    "projector", "pulverizer", "pump", "reactor", "router", "ripple",
    "salvo", "scatter", "segment", "separator", "smelter", "sorter",
    "spectre", "switch", "swarmer", "tank", "tsunami", "turret", "unloader",
    "vault", "wave", "weaver",
})

BUILDING_NAME_PATTERN = re.compile(r"^([a-z]+)(\d+)$")


def is_building_link(name: str) -> bool:
    """Return True if ``name`` looks like a linked building (``cell1``)."""
    match = BUILDING_NAME_PATTERN.match(name)
    if not match:
        return False
    return match.group(1) in BUILDING_LINK_NAMES
