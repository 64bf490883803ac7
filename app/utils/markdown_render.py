"""
Report Markdown -> HTML.

Handles just what the report prompt asks the AI for:
# / ## / ### headings, **bold**, "-" or "*" bullet lists, pipe tables with a
"---" separator row, and plain paragraphs. Text is HTML-escaped first.
"""

import html
import re

_BOLD = re.compile(r"\*\*(.*?)\*\*")


def _inline(text: str) -> str:
    return _BOLD.sub(r"<strong>\1</strong>", html.escape(text, quote=False))


def _cells(line: str):
    return [c.strip() for c in line.strip().strip("|").split("|")]


def render_report_html(markdown: str) -> str:
    lines = markdown.strip().split("\n")
    out = []
    in_list = False
    in_table = False
    i = 0

    while i < len(lines):
        line = lines[i].strip()
        is_item = line.startswith("* ") or line.startswith("- ")

        # close open blocks
        if in_list and not is_item:
            out.append("</ul>")
            in_list = False
        if in_table and not line.startswith("|"):
            out.append("</tbody></table>")
            in_table = False

        if line.startswith("### "):
            out.append(f"<h3>{_inline(line[4:])}</h3>")
        elif line.startswith("## "):
            out.append(f"<h2>{_inline(line[3:])}</h2>")
        elif line.startswith("# "):
            out.append(f"<h1>{_inline(line[2:])}</h1>")
        elif line.startswith("|"):
            if in_table:
                cells = "".join(f"<td>{_inline(c)}</td>" for c in _cells(line))
                out.append(f"<tr>{cells}</tr>")
            else:
                next_line = lines[i + 1].strip() if i + 1 < len(lines) else ""
                if next_line.startswith("|") and "---" in next_line:
                    headers = "".join(f"<th>{_inline(c)}</th>" for c in _cells(line))
                    out.append(f"<table><thead><tr>{headers}</tr></thead><tbody>")
                    in_table = True
                    i += 1  # skip separator
                else:
                    out.append(f"<p>{_inline(line)}</p>")
        elif is_item:
            if not in_list:
                out.append("<ul>")
                in_list = True
            out.append(f"<li>{_inline(line[2:])}</li>")
        elif line:
            out.append(f"<p>{_inline(line)}</p>")
        i += 1

    if in_list:
        out.append("</ul>")
    if in_table:
        out.append("</tbody></table>")

    return "\n".join(out)
