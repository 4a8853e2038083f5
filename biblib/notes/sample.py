"""
Sample variables for previewing templates without a real citation.
"""

from __future__ import annotations

import copy
from datetime import datetime
from typing import Any, Literal, Optional

Mode = Literal["normal", "citekey", "frontmatter"]

_SAMPLE: dict[str, Any] = {
    "id": "smith_neural2024",
    "citekey": "smith_neural2024",
    "type": "article-journal",
    "title": "Neural Networks for Climate Prediction",
    "issued": {"date-parts": [[2024, 3, 15]]},
    "year": 2024,
    "month": 3,
    "day": 15,
    "URL": "https://example.org/10.1234/climate.2024.001",
    "DOI": "10.1234/climate.2024.001",
    "publisher": "Journal of Climate Science",
    "container-title": "Journal of Climate Science",
    "abstract": (
        "This study presents a novel neural network framework for improving "
        "climate model accuracy and computational efficiency."
    ),
    "volume": 15,
    "issue": 2,
    "page": "123-145",
    "publisher-place": "Cambridge",
    "language": "en",
    "author": [
        {"family": "Smith", "given": "John"},
        {"family": "Rodriguez", "given": "Maria"},
        {"family": "Zhang", "given": "Wei"},
    ],
    "authors": "J. Smith et al.",
    "authors_raw": [
        {"family": "Smith", "given": "John", "role": "author"},
        {"family": "Rodriguez", "given": "Maria", "role": "author"},
        {"family": "Zhang", "given": "Wei", "role": "author"},
    ],
    "authors_family": ["Smith", "Rodriguez", "Zhang"],
    "authors_given": ["John", "Maria", "Wei"],
    "editors": "E. Jones",
    "editors_family": ["Jones"],
    "editors_given": ["Emily"],
    "pdflink": ["biblib/smith_neural2024/paper.pdf"],
    "raw_pdflink": "biblib/smith_neural2024/paper.pdf",
    "attachments": [
        "[[biblib/smith_neural2024/paper.pdf|PDF]]",
        "[[biblib/smith_neural2024/supplementary.html|HTML]]",
    ],
    "attachment": "[[biblib/smith_neural2024/paper.pdf|PDF]]",
    "quoted_attachments": [
        '"[[biblib/smith_neural2024/paper.pdf|PDF]]"',
        '"[[biblib/smith_neural2024/supplementary.html|HTML]]"',
    ],
    "quoted_attachment": '"[[biblib/smith_neural2024/paper.pdf|PDF]]"',
    "links": ["[[Research/Climate Science/Overview]]", "[[Projects/ML Applications]]"],
    "linkPaths": ["Research/Climate Science/Overview.md", "Projects/ML Applications.md"],
    "links_string": "[[Research/Climate Science/Overview]], [[Projects/ML Applications]]",
}


def _full_names(family: list, given: list) -> list[str]:
    names = []
    for i, fam in enumerate(family):
        first = given[i] if i < len(given) else ""
        names.append(f"{first} {fam}" if first else fam)
    return names


def sample_data(mode: Mode = "normal", now: Optional[datetime] = None) -> dict[str, Any]:
    """
    A fresh copy of the sample variables.

    In ``frontmatter`` mode the role display strings (``"J. Smith et al."``)
    become lists of full names so array templates can iterate them.
    """
    data = copy.deepcopy(_SAMPLE)
    now = now or datetime.now()
    data["currentDate"] = now.strftime("%Y-%m-%d")
    data["currentTime"] = now.strftime("%H:%M:%S")

    if mode == "frontmatter":
        for role in ("author", "editor", "translator"):
            key = f"{role}s"
            if isinstance(data.get(key), str) and isinstance(data.get(f"{key}_family"), list):
                data[key] = _full_names(data[f"{key}_family"], data.get(f"{key}_given") or [])
    return data
