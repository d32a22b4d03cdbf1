"""Validación estática del código enviado, previa a la ejecución."""

from __future__ import annotations

import re
from dataclasses import dataclass, field


@dataclass(frozen=True)
class ValidationError:
    """Error de validación mostrado al estudiante."""

    message: str
    line: int | None = None

    def __str__(self) -> str:
        if self.line is not None:
            return f"Línea {self.line}: {self.message}"
        return self.message


@dataclass(frozen=True)
class LanguageRules:
    """Reglas léxicas y sintácticas mínimas de un lenguaje."""

    name: str
    quotes: tuple[str, ...] = ('"', "'")
    multiline_quotes: tuple[str, ...] = ()
    line_comment: str | None = "//"
    block_comment: tuple[str, str] | None = ("/*", "*/")
    triple_quotes: bool = False
    verbatim_strings: bool = False
    raw_strings: bool = False  # """...""" de C# 11 y bloques de texto de Java
    entry_pattern: re.Pattern[str] | None = None
    entry_label: str = ""
    terminator: str | None = None
    header_keywords: frozenset[str] = field(default_factory=frozenset)


_C_FAMILY_HEADERS = frozenset({
    "if", "else", "for", "foreach", "while", "do", "switch", "case", "default",
    "try", "catch", "finally", "lock", "fixed", "unsafe", "checked", "unchecked",
    "get", "set", "init", "add", "remove", "synchronized", "static",
})

LANGUAGES: dict[str, LanguageRules] = {
    "csharp": LanguageRules(
        name="csharp",
        verbatim_strings=True,
        raw_strings=True,
        entry_pattern=re.compile(r"\bstatic\s+(?:async\s+)?(?:void|int|Task(?:\s*<\s*int\s*>)?)\s+Main\s*\("),
        entry_label="static void Main",
        terminator=";",
        header_keywords=_C_FAMILY_HEADERS | {"using"},
    ),
    "java": LanguageRules(
        name="java",
        entry_pattern=re.compile(r"\bpublic\s+static\s+void\s+main\s*\("),
        entry_label="public static void main",
        raw_strings=True,
        terminator=";",
        header_keywords=_C_FAMILY_HEADERS,
    ),
    "javascript": LanguageRules(name="javascript", multiline_quotes=("`",)),
    "typescript": LanguageRules(name="typescript", multiline_quotes=("`",)),
    "python": LanguageRules(name="python", line_comment="#", block_comment=None, triple_quotes=True),
}

ALIASES = {
    "c#": "csharp",
    "cs": "csharp",
    "js": "javascript",
    "ts": "typescript",
    "py": "python",
}

# Reglas genéricas para lenguajes desconocidos: solo delimitadores
_GENERIC = LanguageRules(name="generic", line_comment=None, block_comment=None)

PAIRS = {")": "(", "]": "[", "}": "{"}
OPENERS = set(PAIRS.values())

# Finales de línea que indican que la sentencia continúa o no la requiere
_EXEMPT_ENDINGS = (
    "{", "}", ";", ",", "(", "[", ":", "=>", "=", "+", "-", "*", "/", "%",
    "&&", "||", "?", ".", "<", "!", "&", "|", "^",
)
# Inicios de línea que continúan la sentencia anterior
_CONTINUATIONS = (".", "?", ":", "+", "-", "*", "/", "&&", "||", "=>", "{", "where ")

_EXPRESSION_BRACE = re.compile(r"(?:[=(,\[]|=>|\breturn|\bswitch|\bnew\b[\w.<>\[\](),\s]*)\s*$")
_ENUM_HEADER = re.compile(r"\benum\b")


def resolve_rules(language: str) -> LanguageRules:
    """Reglas para una etiqueta de lenguaje (genéricas si es desconocida)."""
    key = language.strip().lower()
    return LANGUAGES.get(ALIASES.get(key, key), _GENERIC)


def scan_literals(code: str, rules: LanguageRules) -> tuple[str, list[tuple[int, int]]]:
    """Enmascarar cadenas y comentarios y devolver los tramos multilínea.

    Cada tramo ``(inicio, fin)`` es el contenido enmascarado de un literal
    o comentario que cruza al menos un salto de línea.
    """
    out = list(code)
    n = len(code)
    spans: list[tuple[int, int]] = []

    def blank(start: int, end: int) -> None:
        end = min(end, n)
        if "\n" in code[start:end]:
            spans.append((start, end))
        for k in range(start, end):
            if out[k] != "\n":
                out[k] = " "

    i = 0
    while i < n:
        if rules.line_comment and code.startswith(rules.line_comment, i):
            end = code.find("\n", i)
            end = n if end == -1 else end
            blank(i, end)
            i = end
            continue

        if rules.block_comment and code.startswith(rules.block_comment[0], i):
            close = code.find(rules.block_comment[1], i + len(rules.block_comment[0]))
            end = n if close == -1 else close + len(rules.block_comment[1])
            blank(i, end)
            i = end
            continue

        if rules.triple_quotes and code.startswith(('"""', "'''"), i):
            quote = code[i:i + 3]
            close = code.find(quote, i + 3)
            end = n if close == -1 else close
            blank(i + 3, end)
            i = end + 3
            continue

        if rules.raw_strings and code.startswith('"""', i):
            # Se cierra con la misma cantidad de comillas con que se abrió
            j = i
            while j < n and code[j] == '"':
                j += 1
            quote = code[i:j]
            close = code.find(quote, j)
            end = n if close == -1 else close
            blank(j, end)
            i = end + len(quote)
            continue

        c = code[i]
        if rules.verbatim_strings and c == "@" and code.startswith('"', i + 1):
            j = i + 2
            while j < n:
                if code[j] == '"':
                    if code.startswith('"', j + 1):
                        j += 2
                        continue
                    break
                j += 1
            blank(i + 2, j)
            i = j + 1
            continue

        if c in rules.quotes or c in rules.multiline_quotes:
            multiline = c in rules.multiline_quotes
            j = i + 1
            while j < n:
                if code[j] == "\\":
                    j += 2
                    continue
                if code[j] == c or (code[j] == "\n" and not multiline):
                    break
                j += 1
            blank(i + 1, j)
            i = j + 1
            continue

        i += 1

    return "".join(out), spans


def mask_literals(code: str, rules: LanguageRules) -> str:
    """Sustituir el contenido de cadenas y comentarios por espacios.

    Conserva los saltos de línea y las comillas, de modo que posiciones y
    números de línea siguen siendo válidos para el resto de comprobaciones.
    """
    return scan_literals(code, rules)[0]


def _line_of(code: str, index: int) -> int:
    return code.count("\n", 0, index) + 1


def _open_literal_lines(code: str, spans: list[tuple[int, int]]) -> set[int]:
    """Líneas que terminan dentro de un literal o comentario multilínea."""
    lines: set[int] = set()
    for start, end in spans:
        lines.update(range(_line_of(code, start), _line_of(code, end)))
    return lines


def check_delimiters(masked: str) -> ValidationError | None:
    """Comprobar paréntesis, llaves y corchetes con una pila.

    Informa del primer cierre sin pareja o, si no lo hay, de la primera
    apertura que quedó sin cerrar.
    """
    stack: list[tuple[str, int]] = []
    for index, c in enumerate(masked):
        if c in OPENERS:
            stack.append((c, index))
        elif c in PAIRS:
            if not stack or stack[-1][0] != PAIRS[c]:
                return ValidationError(f"'{c}' sin apertura correspondiente", _line_of(masked, index))
            stack.pop()

    if stack:
        c, index = stack[0]
        return ValidationError(f"'{c}' sin cerrar", _line_of(masked, index))
    return None


def check_entry_point(masked: str, rules: LanguageRules) -> ValidationError | None:
    """Comprobar que existe el punto de entrada del programa."""
    if rules.entry_pattern is None or rules.entry_pattern.search(masked):
        return None
    return ValidationError(f"Falta el punto de entrada del programa ({rules.entry_label})")


def _opens_block(before: str) -> bool:
    """¿La llave que sigue a ``before`` abre un bloque de sentencias?"""
    tail = before.rstrip()
    if _EXPRESSION_BRACE.search(tail):
        return False
    header = tail.rsplit("\n", 1)[-1]
    return not _ENUM_HEADER.search(header)


def _statement_lines(masked: str) -> list[tuple[int, str, bool]]:
    """Líneas con (número, texto, ¿es contexto de sentencia?).

    Una línea está en contexto de sentencia cuando al empezar no hay
    paréntesis/corchetes abiertos y la llave que la contiene abre un
    bloque (no un inicializador ni una expresión).
    """
    result: list[tuple[int, str, bool]] = []
    braces: list[bool] = []  # True = llave de bloque
    depth = 0
    line_start = 0

    for lineno, line in enumerate(masked.split("\n"), start=1):
        statement_context = depth == 0 and (not braces or braces[-1])
        result.append((lineno, line, statement_context))

        for offset, c in enumerate(line):
            if c in "([":
                depth += 1
            elif c in ")]":
                depth = max(0, depth - 1)
            elif c == "{":
                before = masked[max(0, line_start + offset - 200):line_start + offset]
                braces.append(depth == 0 and _opens_block(before))
            elif c == "}" and braces:
                braces.pop()

        line_start += len(line) + 1

    return result


def check_terminators(
    masked: str,
    rules: LanguageRules,
    open_literal_lines: set[int] | None = None,
) -> list[ValidationError]:
    """Comprobar que cada sentencia simple termina con el terminador.

    Las líneas de ``open_literal_lines`` continúan dentro de un literal
    multilínea y no se comprueban.
    """
    if rules.terminator is None:
        return []

    lines = _statement_lines(masked)
    skipped = open_literal_lines or set()
    errors: list[ValidationError] = []

    for position, (lineno, line, statement_context) in enumerate(lines):
        stripped = line.strip()
        if not stripped or not statement_context or lineno in skipped:
            continue
        if stripped.startswith("#"):
            continue
        if stripped.startswith("[") and stripped.endswith("]"):
            continue
        if stripped.endswith(_EXEMPT_ENDINGS) or stripped.endswith(rules.terminator):
            continue

        first_word = re.split(r"[\s(]", stripped, maxsplit=1)[0]
        if first_word in rules.header_keywords:
            continue

        following = next((text.strip() for _, text, _ in lines[position + 1:] if text.strip()), "")
        if following.startswith(_CONTINUATIONS) and not following.startswith(("++", "--")):
            continue

        errors.append(ValidationError(f"Falta '{rules.terminator}' al final de la sentencia", lineno))

    return errors


class CodeValidator:
    """Validador estático puro: sin efectos ni E/S.

    Una lista vacía significa "admisible para ejecutar", no "correcto".
    """

    def validate(self, code: str, language: str) -> list[ValidationError]:
        """Validar código y devolver todos los errores encontrados."""
        if not code.strip():
            return [ValidationError("El código está vacío")]

        rules = resolve_rules(language)
        masked, spans = scan_literals(code, rules)
        errors: list[ValidationError] = []

        delimiter_error = check_delimiters(masked)
        if delimiter_error:
            errors.append(delimiter_error)

        entry_error = check_entry_point(masked, rules)
        if entry_error:
            errors.append(entry_error)

        errors.extend(check_terminators(masked, rules, _open_literal_lines(code, spans)))
        return errors


def validate(code: str, language: str) -> list[ValidationError]:
    """Atajo funcional sobre ``CodeValidator``."""
    return CodeValidator().validate(code, language)
