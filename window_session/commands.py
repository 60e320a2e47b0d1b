"""
Command lines: canonical string form and launcher-template reconciliation.

A launcher template is the command an application declares for itself
(e.g. ``gedit %U``).  Placeholders stand for arguments supplied at launch
time: ``%f``/``%u`` one file or URL, ``%F``/``%U`` any number of them.
When the running process's argv fits the template we keep the real argv
(it carries the documents that were open); otherwise we fall back to the
template with its placeholders dropped.
"""

import re
from typing import List, Optional, Sequence

# One shell-ish argument: double-quoted, single-quoted, or bare.
_ARG = r"\"(?:[^\"\\]|\\.)*\"|'(?:[^'\\]|\\.)*'|[^\"'\s]+"
_ARG_RE = re.compile(_ARG)
_PLACEHOLDER_RE = re.compile(r"^%[fu]$", re.IGNORECASE)
_NEEDS_QUOTES_RE = re.compile(r"[\s\"'\\]")


def args_to_command(comm: Sequence[str]) -> str:
    """Join argv into one canonical string, quoting awkward arguments."""
    return " ".join(
        '"' + arg.replace('"', '\\"') + '"' if _NEEDS_QUOTES_RE.search(arg) else arg
        for arg in comm
    )


def split_cmdline(argv: Sequence[str]) -> List[str]:
    """
    Normalise a process argv.  Some programs rewrite argv[0] into a single
    space-joined string (Chromium-based browsers, for instance), so the
    first element is split on spaces.
    """
    if not argv:
        return []
    return [*argv[0].split(" "), *argv[1:]]


def template_pattern(template: str) -> "re.Pattern[str]":
    pattern = ""
    for token in _ARG_RE.findall(template):
        if _PLACEHOLDER_RE.match(token):
            pattern += r"(?:\s+(?:" + _ARG + "))"
            if token in ("%F", "%U"):
                pattern += "*"
            pattern += "?"
        else:
            if pattern:
                pattern += r"\s+"
            pattern += re.escape(token)
    return re.compile("^" + pattern + "$")


def template_matches(template: str, command: str) -> bool:
    """True if ``command`` could have been produced by ``template``."""
    return template_pattern(template).match(command) is not None


def resolve_comm(template: Optional[str], comm: List[str]) -> List[str]:
    """Pick the argv to remember for a window."""
    if not template:
        return comm
    if " %" in template and template_matches(template, args_to_command(comm)):
        return comm
    return [arg for arg in template.split() if not arg.startswith("%")]
