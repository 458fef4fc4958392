"""
JohnnyScript assembler for the Johnny Simulator.

Translates .jns source into a 1000-word .ram image:
  word 0          JMP to the first code word
  words 1..V      variable initial values, in declaration order
  words V+1..     code, with jumps resolved against jump points
  the rest        000
"""

import logging
import re
from enum import Enum, IntEnum, auto
from typing import List, NamedTuple, Optional, Tuple

logger = logging.getLogger(__name__)

MEMORY_SIZE = 1000
MAX_VALUE = 999
EMPTY_WORD = "000"
LINE_COMMENT_DELIMITER = "//"
SOURCE_EXTENSION = ".jns"
OUTPUT_EXTENSION = ".ram"

NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
NUMBER_RE = re.compile(r"[0-9]+")
WORD_RE = re.compile(r"(?:10|[1-9])?[0-9]{3}")


class Opcode(IntEnum):
    TAKE = 1
    ADD = 2
    SUB = 3
    SAVE = 4
    JMP = 5
    TST = 6
    INC = 7
    DEC = 8
    NULL = 9
    HLT = 10


# ── Errors ──────────────────────────────────────────────────────────────────

class JohnnyScriptError(Exception):
    def __init__(self, msg, lineno=None):
        super().__init__(msg)
        self.msg = msg
        self.lineno = lineno

    def __str__(self):
        if self.lineno is not None:
            return f"Error (line {self.lineno}): {self.msg}"
        return f"Error: {self.msg}"


class InvalidScriptError(JohnnyScriptError):
    pass


class UnknownMnemonicError(InvalidScriptError):
    pass


class DuplicateVariableError(JohnnyScriptError):
    pass


class DuplicateJumpPointError(JohnnyScriptError):
    pass


class VariableNotDeclaredError(JohnnyScriptError):
    pass


class CapacityOverflowError(JohnnyScriptError):
    pass


class UnresolvedJumpsError(JohnnyScriptError):
    def __init__(self, names):
        self.names = list(names)
        super().__init__("Unresolved jump point(s): " + ", ".join(self.names))


class UnitFinalizedError(JohnnyScriptError):
    pass


# ── Opcode table ────────────────────────────────────────────────────────────

def lookup(mnemonic: str) -> Opcode:
    """Case-insensitive mnemonic lookup."""
    try:
        return Opcode[mnemonic.upper()]
    except KeyError:
        raise UnknownMnemonicError(f"Unknown mnemonic '{mnemonic}'") from None


def digit(opcode: Opcode) -> int:
    return int(opcode)


def zero_pad3(value: int) -> str:
    return f"{value:03d}"


def instruction_word(opcode: Opcode, address: int = 0) -> str:
    return f"{digit(opcode)}{zero_pad3(address)}"


# ── Assembly unit ───────────────────────────────────────────────────────────

class JumpPlaceholder(NamedTuple):
    name: str


class AssemblyUnit:
    """
    Collects variables, jump points and code during a single scan of the
    source. finalize() lays out the memory image and resolves the jumps.
    """

    def __init__(self):
        self.reset()

    def reset(self):
        self.variables = {}      # name -> initial value, declaration order
        self.slots = {}          # name -> storage slot (1-based)
        self.jump_points = {}    # name -> code-relative offset
        self.pending_jumps = []  # (name, code-relative offset)
        self.code = []           # str or JumpPlaceholder
        self.finalized = False

    def _check_open(self):
        if self.finalized:
            raise UnitFinalizedError("Assembly unit already finalized; call reset() first")

    def declare_variable(self, name: str, initial_value: int) -> int:
        self._check_open()
        if not 0 <= initial_value <= MAX_VALUE:
            raise InvalidScriptError(f"Value {initial_value} out of range 0..{MAX_VALUE}: {name}")
        if name in self.variables:
            raise DuplicateVariableError(f"Variable cannot be defined twice: {name}")
        self.variables[name] = initial_value
        self.slots[name] = len(self.variables)
        logger.debug("variable %s = %d at slot %d", name, initial_value, self.slots[name])
        return self.slots[name]

    def emit_code(self, word: str):
        self._check_open()
        if not WORD_RE.fullmatch(word):
            raise InvalidScriptError(f"Malformed code word '{word}'")
        self.code.append(word)

    def emit_code_with_variable(self, opcode: Opcode, variable_name: str):
        self._check_open()
        if variable_name not in self.slots:
            raise VariableNotDeclaredError(f"Variable not initialized: {variable_name}")
        self.code.append(instruction_word(opcode, self.slots[variable_name]))

    def declare_jump_point(self, name: str) -> int:
        self._check_open()
        if name in self.jump_points:
            raise DuplicateJumpPointError(f"Jump point cannot be defined twice: {name}")
        self.jump_points[name] = len(self.code)
        logger.debug("jump point %s at offset %d", name, self.jump_points[name])
        return self.jump_points[name]

    def emit_jump(self, name: str):
        self._check_open()
        self.pending_jumps.append((name, len(self.code)))
        self.code.append(JumpPlaceholder(name))

    def finalize(self) -> Tuple[str, ...]:
        self._check_open()
        var_count = len(self.variables)
        code_count = len(self.code)
        used = 1 + var_count + code_count
        if used > MEMORY_SIZE:
            raise CapacityOverflowError(
                f"Program needs {used} words, memory holds {MEMORY_SIZE}")

        # The first code word sits right after the variables.
        code_start = 1 + var_count
        image = [EMPTY_WORD] * MEMORY_SIZE
        image[0] = instruction_word(Opcode.JMP, code_start)
        for address, value in enumerate(self.variables.values(), start=1):
            image[address] = zero_pad3(value)
        image[code_start:code_start + code_count] = self.code

        unresolved = []
        for name, offset in self.pending_jumps:
            if name not in self.jump_points:
                if name not in unresolved:
                    unresolved.append(name)
                continue
            image[code_start + offset] = instruction_word(
                Opcode.JMP, code_start + self.jump_points[name])
        if unresolved:
            raise UnresolvedJumpsError(unresolved)

        self.finalized = True
        logger.debug("finalized: %d variables, %d code words, %d jumps",
                     var_count, code_count, len(self.pending_jumps))
        return tuple(image)


# ── Line tokenizer ──────────────────────────────────────────────────────────

class LineKind(Enum):
    VARIABLE = auto()
    VAR_REF = auto()
    JUMP_POINT = auto()
    JUMP = auto()
    CODE = auto()
    DATA = auto()


class Statement(NamedTuple):
    kind: LineKind
    lineno: int
    text: str
    name: Optional[str] = None
    opcode: Optional[Opcode] = None
    value: int = 0


def strip_comment(line):
    index = line.find(LINE_COMMENT_DELIMITER)
    return line if index < 0 else line[:index]


def parse_number(token, lineno, text):
    if not NUMBER_RE.fullmatch(token):
        raise InvalidScriptError(f"Expected a number 0..{MAX_VALUE}, got '{token}': {text}", lineno)
    value = int(token)
    if value > MAX_VALUE:
        raise InvalidScriptError(f"Value {value} out of range 0..{MAX_VALUE}: {text}", lineno)
    return value


def parse_name(token, lineno, text):
    if not NAME_RE.fullmatch(token):
        raise InvalidScriptError(f"Invalid name '{token}': {text}", lineno)
    return token


def parse_mnemonic(token, lineno):
    try:
        return lookup(token)
    except UnknownMnemonicError as e:
        e.lineno = lineno
        raise


def parse_line(line: str, lineno: int) -> Optional[Statement]:
    """Classify one source line, or return None if it holds no code."""
    text = strip_comment(line).strip()
    if not text:
        return None
    parts = text.split()
    if len(parts) > 2:
        raise InvalidScriptError(f"Too many parts: {text}", lineno)

    if len(parts) == 1:
        token = parts[0]
        if token.endswith(":"):
            name = parse_name(token[:-1], lineno, text)
            return Statement(LineKind.JUMP_POINT, lineno, text, name=name)
        if NUMBER_RE.fullmatch(token):
            return Statement(LineKind.DATA, lineno, text, value=parse_number(token, lineno, text))
        return Statement(LineKind.CODE, lineno, text, opcode=parse_mnemonic(token, lineno))

    first, second = parts
    if first.startswith("#"):
        name = parse_name(first[1:], lineno, text)
        return Statement(LineKind.VARIABLE, lineno, text, name=name,
                         value=parse_number(second, lineno, text))

    opcode = parse_mnemonic(first, lineno)
    if second.startswith("#"):
        name = parse_name(second[1:], lineno, text)
        return Statement(LineKind.VAR_REF, lineno, text, name=name, opcode=opcode)
    if NUMBER_RE.fullmatch(second):
        return Statement(LineKind.CODE, lineno, text, opcode=opcode,
                         value=parse_number(second, lineno, text))
    if opcode is Opcode.JMP:
        name = parse_name(second, lineno, text)
        return Statement(LineKind.JUMP, lineno, text, name=name)
    raise InvalidScriptError(f"Invalid operand '{second}': {text}", lineno)


# ── Driver ──────────────────────────────────────────────────────────────────

def feed(unit, statement):
    kind = statement.kind
    if kind is LineKind.VARIABLE:
        unit.declare_variable(statement.name, statement.value)
    elif kind is LineKind.VAR_REF:
        unit.emit_code_with_variable(statement.opcode, statement.name)
    elif kind is LineKind.JUMP_POINT:
        unit.declare_jump_point(statement.name)
    elif kind is LineKind.JUMP:
        unit.emit_jump(statement.name)
    elif kind is LineKind.CODE:
        unit.emit_code(instruction_word(statement.opcode, statement.value))
    else:
        unit.emit_code(zero_pad3(statement.value))


def compile_lines(lines) -> Tuple[str, ...]:
    """Assemble source lines into a memory image, raising on the first error."""
    unit = AssemblyUnit()
    for lineno, line in enumerate(lines, start=1):
        statement = parse_line(line, lineno)
        if statement is None:
            continue
        try:
            feed(unit, statement)
        except JohnnyScriptError as e:
            if e.lineno is None:
                e.lineno = lineno
                e.msg = f"{e.msg}: {statement.text}"
            raise
    return unit.finalize()


def assemble(source: str) -> Tuple[Tuple[str, ...], List[str]]:
    errors = []
    try:
        image = compile_lines(source.splitlines())
    except UnresolvedJumpsError as e:
        errors.extend(f"Error: Unresolved jump point '{name}'" for name in e.names)
        return (), errors
    except JohnnyScriptError as e:
        errors.append(str(e))
        return (), errors
    return image, errors


def format_listing(image, used_only=True):
    """Render the image as 'AAA: WORD' lines, trimming trailing empty words."""
    end = len(image)
    if used_only:
        while end > 1 and image[end - 1] == EMPTY_WORD:
            end -= 1
    return [f"{zero_pad3(address)}: {word}" for address, word in enumerate(image[:end])]


def write_ram(image, path):
    with open(path, "w") as fh:
        fh.write("\n".join(image) + "\n")
