"""
mlog Instruction Table
======================

This module describes every instruction the logic processor understands and
the role each operand plays. The analyzers use it to tell which operands an
instruction reads, which it writes and which are fixed keywords.

Operand Roles
-------------
| Role    | Meaning                                  | Example            |
|---------|------------------------------------------|--------------------|
| READ    | Value is read (variable or literal)      | ``set x y`` -> y   |
| WRITE   | Variable receives a result               | ``set x y`` -> x   |
| LABEL   | Jump destination (label or index)        | ``jump loop ...``  |
| KEYWORD | Fixed word selecting a mode or filter    | ``radar enemy ...``|
| IGNORED | Accepted but not used by this variant    | ``uradar ... 0 ..``|

Shape Notation
--------------
Shapes are written as space separated parameter names with a role prefix:

    >name   WRITE
    :name   LABEL
    !name   KEYWORD
    _name   IGNORED
    name    READ

Overloaded instructions (``op``, ``ucontrol``, ``jump``, ...) pick a variant
with a selector keyword. The selector follows the ``pre`` parameters, which
is empty for everything but ``jump`` (``jump <destination> <condition> ...``).
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional

from mlog_tools.parser.lexer import Token
from mlog_tools.parser.nodes import Instruction


# =============================================================================
# Operand Roles
# =============================================================================

class OperandRole(Enum):
    """How an instruction uses one of its operands."""
    READ = auto()
    WRITE = auto()
    LABEL = auto()
    KEYWORD = auto()
    IGNORED = auto()


ROLE_PREFIXES = {
    ">": OperandRole.WRITE,
    ":": OperandRole.LABEL,
    "!": OperandRole.KEYWORD,
    "_": OperandRole.IGNORED,
}


@dataclass(frozen=True)
class Parameter:
    """A named operand slot of an instruction."""
    name: str
    role: OperandRole


def shape(notation: str) -> tuple[Parameter, ...]:
    """
    Parse a shape string into parameters.

    Example:
        >>> shape(">result a b")[0]
        Parameter(name='result', role=<OperandRole.WRITE: 2>)
    """
    params = []
    for word in notation.split():
        role = ROLE_PREFIXES.get(word[0])
        if role is None:
            params.append(Parameter(word, OperandRole.READ))
        else:
            params.append(Parameter(word[1:] or word, role))
    return tuple(params)


@dataclass(frozen=True)
class InstructionShape:
    """
    Description of one instruction.

    Attributes:
        name: The opcode
        params: Parameters of a non-overloaded instruction
        pre: Parameters before the selector (overloaded only)
        overloads: Selector keyword -> parameters after the selector
    """
    name: str
    params: tuple[Parameter, ...] = ()
    pre: tuple[Parameter, ...] = ()
    overloads: dict[str, tuple[Parameter, ...]] = field(default_factory=dict)

    @property
    def is_overloaded(self) -> bool:
        return bool(self.overloads)

    @property
    def selector_index(self) -> int:
        return len(self.pre)


@dataclass(frozen=True)
class Operand:
    """An operand token paired with its role."""
    token: Token
    role: OperandRole
    name: str


def single(name: str, notation: str = "") -> InstructionShape:
    return InstructionShape(name, params=shape(notation))


def overloaded(name: str, overloads: dict[str, str], pre: str = "") -> InstructionShape:
    return InstructionShape(
        name,
        pre=shape(pre),
        overloads={key: shape(value) for key, value in overloads.items()},
    )


# =============================================================================
# Shared Overload Sets
# =============================================================================

_BINARY = ">result a b"
_UNARY = ">result x"

OP_OVERLOADS = {
    "add": _BINARY, "sub": _BINARY, "mul": _BINARY, "div": _BINARY,
    "idiv": _BINARY, "mod": _BINARY, "pow": _BINARY,
    "equal": _BINARY, "notEqual": _BINARY, "land": _BINARY,
    "lessThan": _BINARY, "lessThanEq": _BINARY,
    "greaterThan": _BINARY, "greaterThanEq": _BINARY, "strictEqual": _BINARY,
    "shl": _BINARY, "shr": _BINARY, "or": _BINARY, "and": _BINARY, "xor": _BINARY,
    "not": _UNARY,
    "max": _BINARY, "min": _BINARY,
    "angle": _BINARY, "angleDiff": _BINARY, "len": _BINARY, "noise": _BINARY,
    "abs": _UNARY, "log": _UNARY, "log10": _UNARY,
    "floor": _UNARY, "ceil": _UNARY, "sqrt": _UNARY, "rand": _UNARY,
    "sin": _UNARY, "cos": _UNARY, "tan": _UNARY,
    "asin": _UNARY, "acos": _UNARY, "atan": _UNARY,
}

JUMP_OVERLOADS = {
    "equal": "x y",
    "notEqual": "x y",
    "lessThan": "x y",
    "lessThanEq": "x y",
    "greaterThan": "x y",
    "greaterThanEq": "x y",
    "strictEqual": "x y",
    "always": "",
}

DRAW_OVERLOADS = {
    "clear": "red green blue",
    "color": "red green blue alpha",
    "col": "color",
    "stroke": "width",
    "line": "x1 y1 x2 y2",
    "rect": "x y width height",
    "lineRect": "x y width height",
    "poly": "x y sides radius rotation",
    "linePoly": "x y sides radius rotation",
    "triangle": "x1 y1 x2 y2 x3 y3",
    "image": "x y image size rotation",
    "print": "x y !alignment",
    "translate": "x y",
    "scale": "x y",
    "rotate": "degrees",
    "reset": "",
}

UCONTROL_OVERLOADS = {
    "idle": "",
    "stop": "",
    "move": "x y",
    "approach": "x y radius",
    "pathfind": "x y",
    "autoPathfind": "",
    "boost": "enabled",
    "target": "x y shoot",
    "targetp": "unit shoot",
    "itemDrop": "to amount",
    "itemTake": "from item amount",
    "payDrop": "",
    "payTake": "takeUnits",
    "payEnter": "",
    "mine": "x y",
    "flag": "value",
    "build": "x y block rotation config",
    "getBlock": "x y >type >building >floor",
    "within": "x y radius >result",
    "unbind": "",
}

_LOCATE_RESULTS = ">x >y >found >building"

ULOCATE_OVERLOADS = {
    "ore": "_group _enemy ore >x >y >found",
    "building": "!group enemy _ore " + _LOCATE_RESULTS,
    "spawn": "_group _enemy _ore " + _LOCATE_RESULTS,
    "damaged": "_group _enemy _ore " + _LOCATE_RESULTS,
}

_RADAR = "!filter1 !filter2 !filter3 !sort {target} order >output"

FETCH_OVERLOADS = {
    "unit": ">result team index unitType",
    "unitCount": ">result team _ unitType",
    "player": ">result team index",
    "playerCount": ">result team",
    "core": ">result team index",
    "coreCount": ">result team",
    "build": ">result team index blockType",
    "buildCount": ">result team _ blockType",
}

SETRULE_OVERLOADS = {
    "currentWaveTime": "seconds",
    "waveTimer": "enabled",
    "waves": "enabled",
    "wave": "waveNumber",
    "waveSpacing": "seconds",
    "waveSending": "enabled",
    "attackMode": "enabled",
    "enemyCoreBuildRadius": "radius",
    "dropZoneRadius": "radius",
    "unitCap": "amount",
    "mapArea": "_ x y width height",
    "lighting": "enabled",
    "canGameOver": "canIt",
    "ambientLight": "color",
    "solarMultiplier": "multiplier",
    "dragMultiplier": "multiplier",
    "ban": "content",
    "unban": "content",
    "buildSpeed": "multiplier team",
    "unitHealth": "multiplier team",
    "unitBuildSpeed": "multiplier team",
    "unitMineSpeed": "multiplier team",
    "unitCost": "multiplier team",
    "unitDamage": "multiplier team",
    "blockHealth": "multiplier team",
    "blockDamage": "multiplier team",
    "rtsMinWeight": "weight team",
    "rtsMinSquad": "size team",
}

SETMARKER_OVERLOADS = {
    "remove": "id",
    "world": "id bool",
    "minimap": "id bool",
    "autoscale": "id bool",
    "pos": "id x y",
    "endPos": "id x y",
    "drawLayer": "id layer",
    "color": "id color",
    "radius": "id radius",
    "stroke": "id width",
    "rotation": "id angle",
    "shape": "id sides fill outline",
    "flushText": "id fetch",
    "fontSize": "id size",
    "textHeight": "id height",
    "labelFlags": "id background outline",
    "texture": "id name",
    "textureSize": "id width height",
    "posi": "id index x y",
    "uvi": "id index x y",
    "colori": "id index color",
}

_MARKER = "id x y replace"


# =============================================================================
# Instruction Table
# =============================================================================

INSTRUCTIONS: dict[str, InstructionShape] = {
    info.name: info for info in (
        # Input & output
        single("read", ">output target address"),
        single("write", "input target address"),
        overloaded("draw", DRAW_OVERLOADS),
        single("print", "value"),
        single("printchar", "value"),
        single("format", "value"),

        # Block control
        single("drawflush", "target"),
        single("printflush", "target"),
        single("getlink", ">result index"),
        overloaded("control", {
            "enabled": "building enabled",
            "shoot": "building x y shoot",
            "shootp": "building unit shoot",
            "config": "building value",
            "color": "building color",
        }),
        single("radar", _RADAR.format(target="building")),
        single("sensor", ">output target property"),

        # Operations
        single("set", ">variable value"),
        overloaded("op", OP_OVERLOADS),
        overloaded("lookup", {
            "block": ">result id",
            "unit": ">result id",
            "item": ">result id",
            "liquid": ">result id",
            "team": ">result id",
        }),
        single("packcolor", ">result red green blue alpha"),
        single("unpackcolor", ">red >green >blue >alpha value"),

        # Flow control
        single("noop"),
        single("wait", "seconds"),
        single("stop"),
        single("end"),
        overloaded("jump", JUMP_OVERLOADS, pre=":destination"),

        # Unit control
        single("ubind", "unit"),
        overloaded("ucontrol", UCONTROL_OVERLOADS),
        single("uradar", _RADAR.format(target="_")),
        overloaded("ulocate", ULOCATE_OVERLOADS),

        # World processor
        overloaded("getblock", {
            "floor": ">result x y",
            "ore": ">result x y",
            "block": ">result x y",
            "building": ">result x y",
        }),
        overloaded("setblock", {
            "floor": "to x y",
            "ore": "to x y",
            "block": "to x y team rotation",
        }),
        single("spawn", "unitType x y rotation team >result"),
        overloaded("status", {
            "true": "!effect unit",
            "false": "!effect unit duration",
        }),
        single("weathersense", ">result weather"),
        single("weatherset", "weather active"),
        single("spawnwave", "x y natural"),
        overloaded("setrule", SETRULE_OVERLOADS),
        overloaded("message", {
            "notify": "_ >success",
            "announce": "seconds >success",
            "toast": "seconds >success",
            "mission": "_ >success",
        }),
        overloaded("cutscene", {
            "pan": "x y speed",
            "zoom": "level",
            "stop": "",
        }),
        single("effect", "!type x y rotation color data"),
        single("explosion", "team x y radius damage air ground pierce effect"),
        single("setrate", "rate"),
        overloaded("fetch", FETCH_OVERLOADS),
        single("sync", "variable"),
        single("getflag", ">output flagName"),
        single("setflag", "flagName enabled"),
        single("setprop", "property target value"),
        overloaded("playsound", {
            "false": "id volume pitch pan _x _y limit",
            "true": "id volume pitch _pan x y limit",
        }),
        overloaded("setmarker", SETMARKER_OVERLOADS),
        overloaded("makemarker", {
            "shapeText": _MARKER,
            "point": _MARKER,
            "shape": _MARKER,
            "text": _MARKER,
            "line": _MARKER,
            "texture": _MARKER,
            "quad": _MARKER,
        }),
        single("printlocale", "key"),
    )
}

INSTRUCTION_NAMES = frozenset(INSTRUCTIONS)


# =============================================================================
# Lookup Functions
# =============================================================================

def get_instruction_shape(opcode: str) -> Optional[InstructionShape]:
    """Look up an instruction by opcode, None if it is unknown."""
    return INSTRUCTIONS.get(opcode)


def is_known_instruction(opcode: str) -> bool:
    return opcode in INSTRUCTIONS


def resolve_operands(instruction: Instruction) -> list[Operand]:
    """
    Pair every operand of ``instruction`` with its role.

    Unknown instructions yield an empty list. Operands beyond the shape and
    operands of an unrecognized overload are IGNORED, except the parameters
    before the selector, which are always resolved.

    Example:
        >>> node = parse("op add x y 1").nodes[0]
        >>> [(o.token.content, o.role.name) for o in resolve_operands(node)]
        [('add', 'KEYWORD'), ('x', 'WRITE'), ('y', 'READ'), ('1', 'READ')]
    """
    info = INSTRUCTIONS.get(instruction.opcode)
    if info is None:
        return []

    operands = instruction.operands

    if not info.is_overloaded:
        params = info.params
    else:
        selector = info.selector_index
        params = info.pre
        if len(operands) > selector:
            selector_param = Parameter("type", OperandRole.KEYWORD)
            variant = info.overloads.get(operands[selector].content)
            params = params + (selector_param,) + (variant or ())

    result = []
    for i, token in enumerate(operands):
        if i < len(params):
            result.append(Operand(token, params[i].role, params[i].name))
        else:
            result.append(Operand(token, OperandRole.IGNORED, ""))
    return result


def jump_condition(instruction: Instruction) -> Optional[str]:
    """Return the condition keyword of a ``jump``, None if it has none."""
    token = instruction.operand(1)
    return token.content if token is not None else None
