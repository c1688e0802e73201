from __future__ import annotations

import html
import re

from app.schemas.resume import ResumeRecord

_WHITESPACE_RE = re.compile(r"\s+")
_UNSAFE_FILENAME_RE = re.compile(r"[^A-Za-z0-9_.-]")


def export_filename(record: ResumeRecord, extension: str) -> str:
    name = _WHITESPACE_RE.sub("_", record.basic_details.name.strip()) or "Resume"
    name = _UNSAFE_FILENAME_RE.sub("", name) or "Resume"
    return f"{name}_Resume.{extension.lstrip('.')}"


def export_json(record: ResumeRecord) -> str:
    """Serialize exactly the record passed in. Loading the output gives back an equal record."""
    return record.model_dump_json(by_alias=True, indent=2)


def _esc(value: str) -> str:
    return html.escape(value or "", quote=True)


def _dates(*parts: str) -> str:
    start = " ".join(part for part in parts[:2] if part)
    end = " ".join(part for part in parts[2:] if part)
    if start and end:
        return f"{start} – {end}"
    return start or end


def _section(title: str, body: list[str]) -> str:
    if not body:
        return ""
    return f'<section><h2>{_esc(title)}</h2>{"".join(body)}</section>'


def export_html(record: ResumeRecord) -> str:
    basic = record.basic_details
    contact = " | ".join(
        _esc(value)
        for value in (basic.email, basic.phone, basic.location, basic.website, basic.linkedin, basic.github)
        if value
    )

    experience = [
        (
            f"<div class=\"entry\"><h3>{_esc(exp.job_title)}"
            f"{' — ' + _esc(exp.employer) if exp.employer else ''}</h3>"
            f"<p class=\"meta\">{_esc(_dates(exp.start_month, exp.start_year, exp.end_month, exp.end_year))}"
            f"{' · ' + _esc(exp.location) if exp.location else ''}</p>"
            f"<p>{_esc(exp.description)}</p></div>"
        )
        for exp in record.experience
    ]
    education = [
        (
            f"<div class=\"entry\"><h3>{_esc(edu.degree)}</h3>"
            f"<p class=\"meta\">{_esc(edu.institution)}"
            f"{' · ' + _esc(_dates(edu.start_date, '', edu.end_date, '')) if edu.start_date or edu.end_date else ''}</p></div>"
        )
        for edu in record.education
    ]
    projects = [
        f"<div class=\"entry\"><h3>{_esc(project.name)}</h3><p>{_esc(project.description)}</p></div>"
        for project in record.projects
    ]
    skills = [f"<p>{_esc(', '.join(skill for skill in record.skills if skill))}</p>"] if record.skills else []
    certifications = [
        f"<li>{_esc(cert.name)}{' — ' + _esc(cert.issuer) if cert.issuer else ''}"
        f"{' (' + _esc(cert.year) + ')' if cert.year else ''}</li>"
        for cert in record.certifications
    ]
    awards = [
        f"<li><strong>{_esc(award.title)}</strong> {_esc(award.description)}</li>"
        for award in record.awards
    ]

    body = "".join(
        [
            f"<header><h1>{_esc(basic.name)}</h1><p class=\"title\">{_esc(basic.title)}</p>"
            f"<p class=\"contact\">{contact}</p></header>",
            _section("About", [f"<p>{_esc(record.about)}</p>"] if record.about else []),
            _section("Experience", experience),
            _section("Education", education),
            _section("Projects", projects),
            _section("Skills", skills),
            _section("Certifications", [f"<ul>{''.join(certifications)}</ul>"] if certifications else []),
            _section("Awards", [f"<ul>{''.join(awards)}</ul>"] if awards else []),
        ]
    )
    return (
        "<!DOCTYPE html>\n"
        "<html lang=\"en\">\n<head>\n<meta charset=\"UTF-8\">\n"
        "<meta name=\"viewport\" content=\"width=device-width, initial-scale=1.0\">\n"
        f"<title>{_esc(basic.name or 'Resume')} - Resume</title>\n"
        "<style>body { font-family: Arial, sans-serif; margin: 0; padding: 20px; }"
        " .resume-preview { max-width: 800px; margin: 0 auto; } .meta { color: #555; }</style>\n"
        "</head>\n<body>\n"
        f"<div class=\"resume-preview\">{body}</div>\n"
        "</body>\n</html>\n"
    )
