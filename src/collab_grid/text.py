"""
Text normalization and markdown toggles.

Every function here is a total ``str -> str`` transform: it never raises for
any input string. Their output is what ends up in the ``content`` field of
edit messages.
"""

import re

_MULTIPLE_SPACES = re.compile(r" {2,}")
_MULTIPLE_NEWLINES = re.compile(r"\n{3,}")
_HEADER = re.compile(r"^(#{1,6}) *(.+)$")
_CODE_BLOCK = re.compile(r"```([a-zA-Z]*)\n([\s\S]*?)\n```")
_BOLD = re.compile(r"\*\* *([^*]+?) *\*\*")
_ITALIC = re.compile(r"\* *([^*]+?) *\*")
_HEADING_PREFIX = re.compile(r"^(#{1,6})\s+(.*)$")
_NUMBERED = re.compile(r"^[0-9]+\. ")

URL_PREFIXES = ("http://", "https://", "ftp://", "www.")

_PUNCTUATION_FIXES = (
    (" ,", ","),
    (" .", "."),
    ("( ", "("),
    (" )", ")"),
    (" :", ":"),
    (" ;", ";"),
    (" !", "!"),
    (" ?", "?"),
    ("..", "."),
    (",,", ","),
)


def export_to_markdown(raw: str) -> str:
    return raw


def format_text(text: str) -> str:
    """Clean whitespace, headers, code blocks, emphasis and punctuation, in that order."""
    text = clean_whitespace(text)
    text = fix_markdown_headers(text)
    text = format_code_blocks(text)
    text = fix_markdown_formatting(text)
    text = fix_punctuation(text)
    return text


def clean_whitespace(text: str) -> str:
    text = _MULTIPLE_SPACES.sub(" ", text)
    text = _MULTIPLE_NEWLINES.sub("\n\n", text)
    return text.strip()


def fix_markdown_headers(text: str) -> str:
    return "\n".join(
        _HEADER.sub(lambda m: f"{m.group(1)} {m.group(2).strip()}", line)
        for line in text.split("\n")
    )


def format_code_blocks(text: str) -> str:
    return _CODE_BLOCK.sub(lambda m: f"```{m.group(1)}\n{m.group(2).strip()}\n```", text)


def fix_markdown_formatting(text: str) -> str:
    text = _BOLD.sub(r"**\1**", text)
    return _ITALIC.sub(r"*\1*", text)


def fix_punctuation(text: str) -> str:
    for old, new in _PUNCTUATION_FIXES:
        text = text.replace(old, new)
    return text


def _toggle_wrap(text: str, opening: str, closing: str) -> str:
    trimmed = text.strip()
    if (trimmed.startswith(opening) and trimmed.endswith(closing)
            and len(trimmed) > len(opening) + len(closing)):
        return trimmed[len(opening):len(trimmed) - len(closing)]
    return f"{opening}{trimmed}{closing}"


def toggle_bold(text: str) -> str:
    return _toggle_wrap(text, "**", "**")


def toggle_italic(text: str) -> str:
    trimmed = text.strip()
    if trimmed.startswith("**"):
        return f"*{trimmed}*"
    return _toggle_wrap(trimmed, "*", "*")


def toggle_underline(text: str) -> str:
    # Markdown has no underline syntax; HTML <u> tags are used instead.
    return _toggle_wrap(text, "<u>", "</u>")


def toggle_strikethrough(text: str) -> str:
    return _toggle_wrap(text, "~~", "~~")


def toggle_heading(text: str, level: int) -> str:
    """Set the heading level of ``text``, replacing any existing one."""
    trimmed = text.strip()
    match = _HEADING_PREFIX.match(trimmed)
    content = match.group(2).strip() if match else trimmed
    return f"{'#' * level} {content}"


def _is_bullet_line(line: str) -> bool:
    return line.lstrip().startswith(("- ", "* ", "+ "))


def _remove_bullet(line: str) -> str:
    trimmed = line.lstrip()
    if trimmed.startswith(("- ", "* ", "+ ")):
        return trimmed[2:]
    return line


def toggle_list(text: str) -> str:
    lines = text.splitlines()
    if all(_is_bullet_line(line) for line in lines):
        return "\n".join(_remove_bullet(line) for line in lines)
    return "\n".join(f"- {line.strip()}" for line in lines)


def _is_numbered_line(line: str) -> bool:
    return _NUMBERED.match(line.lstrip()) is not None


def _remove_number(line: str) -> str:
    trimmed = line.lstrip()
    pos = trimmed.find(". ")
    if pos >= 0 and all(c in "0123456789" for c in trimmed[:pos]):
        return trimmed[pos + 2:]
    return line


def toggle_numbered_list(text: str) -> str:
    lines = text.splitlines()
    if all(_is_numbered_line(line) for line in lines):
        return "\n".join(_remove_number(line) for line in lines)
    return "\n".join(f"{i}. {line.strip()}" for i, line in enumerate(lines, start=1))


def is_url(text: str) -> bool:
    return text.startswith(URL_PREFIXES)


def convert_url_to_markdown(text: str) -> str:
    """Wrap a bare URL as ``[url](url)``, keeping surrounding whitespace."""
    trimmed = text.strip()
    if trimmed.startswith("[") and "](" in trimmed and trimmed.endswith(")"):
        return text
    if not is_url(trimmed):
        return text
    before = text[:len(text) - len(text.lstrip())]
    after = text[len(before) + len(trimmed):]
    return f"{before}[{trimmed}]({trimmed}){after}"
