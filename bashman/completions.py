"""
Bashman completion synthesizer: bash completion scripts from an App.

Overview
- render(app) emits one completion function per scope (the root plus every
  subcommand), a scanner that finds the active subcommand on the line, and a
  dispatcher registered with `complete -F`.
- The pure helpers below mirror what the emitted functions do at runtime, so
  the behavior can be reasoned about (and tested) without a shell:
  • already_present(line, candidate): is the token already on the line?
  • offered(app, key, line): the tokens a scope still offers.
  • scan(app, words): which scope governs completion.
  • suggest(app, words, cword): what completing words[cword] yields.

Runtime rules (per scope function)
- A non-duplicate switch/option is no longer offered once any of its keys is on
  the line; duplicate ones always are. Short and long keys are separate candidates.
- The root scope also offers every subcommand token.
- When the current word starts with "-" or is the first word after the binary,
  the offered tokens are completed by prefix.
- Otherwise, when the previous word is an option key: a path option completes
  filesystem entries, any other option offers nothing (free-form value).
- Otherwise the offered tokens are completed by prefix.

Scanner policy (values=)
- "literal" (default): every word is considered, so the last token matching a
  subcommand (or the binary, which resets to the root) wins, even when it is
  really the value of a preceding option.
- "skip": the word following any option key is treated as that option's value
  and never selects a subcommand.
"""
import logging
import re
from collections import namedtuple

from .faults import *

logger = logging.getLogger(__name__)

POLICIES = ("literal", "skip")

Suggestion = namedtuple("Suggestion", ("kind", "candidates"))
Suggestion.__doc__ = """
Outcome of completing one word.

- kind: "words" (candidates are literal tokens), "paths" (the shell lists
  filesystem entries) or "none" (a free-form option value, nothing offered).
- candidates: ordered tuple of literal tokens (empty unless kind is "words").
"""

_HEAD = """\
%s() {
	local cur prev opts
	COMPREPLY=()
	cur="${COMP_WORDS[COMP_CWORD]}"
	prev="${COMP_WORDS[COMP_CWORD-1]}"
	opts=()"""

_PAIR = """\
	if [[ ! " ${COMP_LINE} " =~ " %s " ]] && [[ ! " ${COMP_LINE} " =~ " %s " ]]; then
		opts+=("%s")
		opts+=("%s")
	fi"""

_SINGLE = """\
	[[ " ${COMP_LINE} " =~ " %s " ]] || opts+=("%s")"""

_ALWAYS = """\
	opts+=("%s")"""

_FLAGS = """\
	opts=" ${opts[@]} "
	if [[ ${cur} == -* || ${COMP_CWORD} -eq 1 ]] ; then
		COMPREPLY=( $(compgen -W "${opts}" -- "${cur}") )
		return 0
	fi"""

_PATHS = """\
		%s)
			if declare -F _filedir >/dev/null; then
				_filedir
			else
				COMPREPLY=( $(compgen -f -- "${cur}") )
			fi
			return 0
			;;"""

_VALUES = """\
		%s)
			COMPREPLY=()
			return 0
			;;"""

_TAIL = """\
	COMPREPLY=( $(compgen -W "${opts}" -- "${cur}") )
	return 0
}"""

_SCANNER = """\
subcmd_%s() {
	local i cmd%s
	cmd=""%s
	for i in "${COMP_WORDS[@]}"; do%s
		case "${i}" in
%s
		esac
	done
	echo "${cmd}"
}"""

_SKIP = """
		if [[ ${skip} -eq 1 ]]; then
			skip=0
			continue
		fi"""

_CHOOSER = """\
chooser_%s() {
	local cmd
	cmd="$( subcmd_%s )"
	case "${cmd}" in
%s
	esac
}
complete -F chooser_%s -o bashdefault -o default %s
"""


def _policy(values, /):
    if values not in POLICIES:
        raise ValueError(f"'values' must be one of {", ".join(map(repr, POLICIES))}")
    return values


def _slug(text, /):
    return re.sub(r"[^a-z0-9]", "_", text.lower())


def function_name(app, key="", /):
    """
    Name of the completion function for a scope.

    The root scope of binary "my-app" yields "_basher___my_app"; its subcommand
    "build" yields "_basher__my_app_build". Everything but lowercase ASCII
    letters and digits becomes "_".
    """
    if key:
        return f"_basher__{_slug(app.bin_name)}_{_slug(app.subcommand(key).cmd)}"
    return f"_basher___{_slug(app.bin_name)}"


def _check_names(app, /):
    """
    Internal: fail when two scopes share a completion function name.
    """
    seen = {}
    for key in app.scopes:
        if (name := function_name(app, key)) in seen:
            raise NameCollisionError(
                f"subcommands {seen[name]!r} and {key!r} both complete through {name}",
                code=FaultCode.NAME_COLLISION,
                title="name collision",
                hint="rename one of them; letter case and non-alphanumerics are not significant in function names",
            )
        seen[name] = key


def already_present(line, candidate, /):
    """
    Whether candidate already appears as a whole token on the line.

    Parameters
    - line: the full command line, as a string (split on whitespace) or as a
      sequence of tokens.
    - candidate: the key to look for (e.g., "--help").

    Notes
    - Matches whole tokens only: "--help" is not present in "--helpful".
    """
    tokens = line.split() if isinstance(line, str) else tuple(line)
    return candidate in tokens


def offered(app, key, line=(), /):
    """
    Tokens a scope offers before prefix filtering, in emission order.

    Switches then options (declaration order), each contributing its short and
    long key unless it is non-duplicate and already present; the root scope
    then appends every subcommand token.
    """
    tokens = []
    for entry in app.switches_for(key) + app.options_for(key):
        if entry.duplicate or not any(already_present(line, flag) for flag in entry.keys):
            tokens.extend(entry.keys)
    if not key:
        tokens.extend(subcommand.cmd for subcommand in app.subcommands)
    return tuple(tokens)


def _valued(app, /):
    return sorted({flag for option in app.options for flag in option.keys})


def scan(app, words, /, *, values="literal"):
    """
    Resolve the scope governing completion for a command line.

    Every word is inspected in order; the binary name resets to the root ("")
    and a subcommand token selects that subcommand. The last match wins.
    With values="skip", the word following any option key is ignored.

    Returns
    - str: "" for the root, otherwise the subcommand 'cmd'.
    """
    valued = frozenset(_valued(app)) if _policy(values) == "skip" else frozenset()
    commands = {subcommand.cmd for subcommand in app.subcommands}
    current, skip = "", False
    for word in words:
        if skip:
            skip = False
        elif word in valued:
            skip = True
        elif word == app.bin_name:
            current = ""
        elif word in commands:
            current = word
    return current


def suggest(app, words, cword, /, *, values="literal"):
    """
    Simulate completing words[cword] the way the emitted script does.

    Parameters
    - words: every word on the line, binary first (COMP_WORDS).
    - cword: index of the word being completed (COMP_CWORD), at least 1.

    Returns
    - Suggestion(kind, candidates); see the module docstring for the rules.
    """
    words = tuple(words)
    if not isinstance(cword, int) or not 0 < cword < len(words):
        raise IndexError("suggest() 'cword' must index a word after the binary")

    key = scan(app, words, values=values)
    tokens = offered(app, key, words)
    current, previous = words[cword], words[cword - 1]

    if current.startswith("-") or cword == 1:
        return Suggestion("words", tuple(token for token in tokens if token.startswith(current)))
    for option in app.options_for(key):
        if previous in option.keys:
            return Suggestion("paths" if option.path else "none", ())
    return Suggestion("words", tuple(token for token in tokens if token.startswith(current)))


def _function(app, key, /):
    """
    Emit the completion function for one scope.
    """
    lines = [_HEAD % function_name(app, key)]
    for entry in app.switches_for(key) + app.options_for(key):
        if entry.duplicate:
            lines.extend(_ALWAYS % flag for flag in entry.keys)
        elif len(entry.keys) == 2:
            lines.append(_PAIR % (entry.short, entry.long, entry.short, entry.long))
        else:
            lines.append(_SINGLE % (entry.keys[0], entry.keys[0]))
    if not key:
        lines.extend(_ALWAYS % subcommand.cmd for subcommand in app.subcommands)
    lines.append(_FLAGS)

    paths = sorted({flag for option in app.options_for(key) if option.path for flag in option.keys})
    plain = sorted({flag for option in app.options_for(key) if not option.path for flag in option.keys})
    if paths or plain:
        lines.append('\tcase "${prev}" in')
        if paths:
            lines.append(_PATHS % "|".join(paths))
        if plain:
            lines.append(_VALUES % "|".join(plain))
        lines.append("\t\t*)\n\t\t\tCOMPREPLY=()\n\t\t\t;;\n\tesac")
    lines.append(_TAIL)

    logger.debug("completion function %s offers %d keys", function_name(app, key), len(offered(app, key)))
    return "\n".join(lines)


def _scanner(app, skip, /):
    """
    Emit the subcommand scanner (last match wins).
    """
    arms = []
    if skip and (valued := _valued(app)):
        arms.append("\t\t\t%s)\n\t\t\t\tskip=1\n\t\t\t\t;;" % "|".join(valued))
    else:
        skip = False
    arms.append('\t\t\t%s)\n\t\t\t\tcmd=""\n\t\t\t\t;;' % app.bin_name)
    for subcommand in app.subcommands:
        arms.append('\t\t\t%s)\n\t\t\t\tcmd="%s"\n\t\t\t\t;;' % (subcommand.cmd, subcommand.cmd))
    return _SCANNER % (
        function_name(app),
        " skip" if skip else "",
        "\n\tskip=0" if skip else "",
        _SKIP if skip else "",
        "\n".join(arms),
    )


def _chooser(app, /):
    """
    Emit the dispatcher and its `complete` registration.
    """
    root = function_name(app)
    arms = [
        "\t\t%s)\n\t\t\t%s\n\t\t\t;;" % (subcommand.cmd, function_name(app, subcommand.cmd))
        for subcommand in app.subcommands
    ]
    arms.append("\t\t*)\n\t\t\t%s\n\t\t\t;;" % root)
    return _CHOOSER % (root, root, "\n".join(arms), root, app.bin_name)


def render(app, /, *, values="literal"):
    """
    Produce the bash completion script for an App.

    Layout
    - one completion function per subcommand, then the root function;
    - subcmd_<root function>: the scanner (see scan() and the values policy);
    - chooser_<root function>: the dispatcher, falling back to the root function;
    - `complete -F chooser_<root function> -o bashdefault -o default <bin>`.

    Returns
    - str: the script, newline-terminated.

    Raises
    - NameCollisionError: two subcommands normalize to the same function name.
    """
    skip = _policy(values) == "skip"
    _check_names(app)
    parts = [_function(app, subcommand.cmd) for subcommand in app.subcommands]
    parts.append(_function(app, ""))
    parts.append(_scanner(app, skip))
    parts.append(_chooser(app))
    return "\n".join(parts)


__all__ = (
    "Suggestion",
    "POLICIES",
    "function_name",
    "already_present",
    "offered",
    "scan",
    "suggest",
    "render",
)
