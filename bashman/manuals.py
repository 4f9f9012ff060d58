r"""
Bashman manual synthesizer: roff manual pages from an App.

One page per scope: the root page (<bin>.1) and one per subcommand
(<bin>-<cmd>.1). Each page carries, in order:

- .TH header: "<NAME>" "1" "<Month> <Year>" "<command> v<version>" "User Commands"
- NAME, DESCRIPTION
- USAGE: the command, [FLAGS] and [OPTIONS] when any apply, the argument label,
  and <SUBCOMMAND> on a root page with subcommands
- SUBCOMMANDS (root page only)
- FLAGS, OPTIONS, ARGUMENTS (each only when non-empty)
- user sections (root page only, declaration order)

Text is escaped for roff: backslashes become \e, hyphens \-, and lines that
would start with a control character ("." or "'") are guarded with \&.
"""
import calendar
import datetime

from .utils import *


def escape(text, /):
    r"""
    Escape text for roff output.

    Examples
    - escape("--help")      -> "\-\-help"
    - escape(".hidden")     -> "\&.hidden"
    - escape("C:\\path")    -> "C:\epath"
    """
    text = text.replace("\\", r"\e").replace("-", r"\-")
    return "\n".join(
        "\\&" + line if line.startswith((".", "'")) else line
        for line in text.split("\n")
    )


def filename(app, key="", /):
    """
    File name of a page: "<bin>.1" for the root, "<bin>-<cmd>.1" otherwise.
    """
    return f"{app.bin_name}-{app.subcommand(key).cmd}.1" if key else f"{app.bin_name}.1"


def command(app, key="", /):
    """
    The command as typed: "<bin>" or "<bin> <cmd>".
    """
    return f"{app.bin_name} {app.subcommand(key).cmd}" if key else app.bin_name


def usage(app, key="", /):
    """
    Plain (unescaped) usage line for a scope.

    Examples
    - one switch:                    "demo [FLAGS]"
    - plus an option:                "demo [FLAGS] [OPTIONS]"
    - plus argument "<FILE>":        "demo [FLAGS] [OPTIONS] <FILE>"
    - root with subcommands:         "... <SUBCOMMAND>"
    """
    parts = [command(app, key)]
    if app.switches_for(key):
        parts.append("[FLAGS]")
    if app.options_for(key):
        parts.append("[OPTIONS]")
    parts.extend(argument.label for argument in app.arguments_for(key))
    if not key and app.subcommands:
        parts.append("<SUBCOMMAND>")
    return " ".join(parts)


def _entry(keys, label, description, /):
    """
    One ".TP" entry: bold keys (comma-joined), the value label, then the description.
    """
    head = ", ".join(f"\\fB{escape(key)}\\fR" for key in keys)
    if label:
        head = f"{head} {escape(label)}" if head else escape(label)
    return f".TP\n{head}\n{escape(description or '')}"


def _section(section, /):
    heading = f".SS {escape(section.name)}:" if section.inside else f".SH {escape(section.name)}"
    if section.lines:
        body = escape("\n".join(section.lines)).replace("\n", "\n.RE\n")
        return f"{heading}\n.TP\n{body}" if section.inside else f"{heading}\n{body}"
    return "\n".join([heading, *(_entry((label,), None, description) for label, description in section.items)])


def _title(text, fallback, /):
    """
    Header form of a name: uppercased, without double quotes (they delimit the field).
    """
    return text.upper().replace('"', "").strip() or fallback.upper()


def render(app, key="", /, *, date=Unset):
    """
    Produce the roff page for one scope ("" is the root).

    Parameters
    - date: datetime.date for the header; defaults to today (UTC).

    Returns
    - str: the page, newline-terminated.
    """
    if not date:
        date = datetime.datetime.now(datetime.UTC).date()
    subcommand = app.subcommand(key)
    name = _title(app.name, app.bin_name)
    if key:
        name = f"{name} {_title(subcommand.name, subcommand.cmd)}"
    typed = command(app, key)

    lines = [
        f'.TH "{escape(name)}" "1" "{calendar.month_name[date.month]} {date.year}" '
        f'"{escape(typed)} v{escape(app.version)}" "User Commands"',
        f".SH NAME\n{escape(subcommand.name)} \\- Manual page for {escape(typed)} v{escape(app.version)}.",
        f".SH DESCRIPTION\n{escape(subcommand.description or '')}",
        f".SS USAGE:\n.TP\n{escape(usage(app, key))}",
    ]

    if not key and app.subcommands:
        lines.append(".SS SUBCOMMANDS:")
        lines.extend(_entry((entry.cmd,), None, entry.description) for entry in app.subcommands)
    if switches := app.switches_for(key):
        lines.append(".SS FLAGS:")
        lines.extend(_entry(entry.keys, None, entry.description) for entry in switches)
    if options := app.options_for(key):
        lines.append(".SS OPTIONS:")
        lines.extend(_entry(entry.keys, entry.label, entry.description) for entry in options)
    if arguments := app.arguments_for(key):
        lines.append(".SS ARGUMENTS:")
        lines.extend(_entry((), entry.label, entry.description) for entry in arguments)
    if not key:
        lines.extend(map(_section, app.sections))

    return "\n".join(lines) + "\n"


def render_all(app, /, *, date=Unset):
    """
    Render every page, root first.

    Returns
    - dict: file name -> page text, in scope order.
    """
    return {filename(app, key): render(app, key, date=date) for key in app.scopes}


__all__ = (
    "escape",
    "filename",
    "command",
    "usage",
    "render",
    "render_all",
)
