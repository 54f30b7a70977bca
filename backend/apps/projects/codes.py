"""
Project code generation.

A project code reads ``<TypeLetter><YY><WW>-<NNN>``, e.g. ``C2507-003``:

- TypeLetter: category letter mapped from the project type label
- YY: last two digits of the year
- WW: week of the year, zero-padded
- NNN: sequence within the ``<TypeLetter><YY><WW>`` prefix, zero-padded

The week number uses the simplified formula
``ceil((day_of_year + jan1_weekday) / 7)`` with Sunday as weekday 0, not
ISO-8601 week numbering. Existing codes were issued with this formula, so it
must not be "corrected".

Generation only reads. Uniqueness is guaranteed by the unique constraint on
Project.code; the value returned here is a hint that can lose a race with a
concurrent creation (see services.create_project).
"""

import math

from django.utils import timezone

from apps.projects.models import Project

PROJECT_TYPE_LETTERS = {
    "客戶需求導向": "C",
    "公司策略導向": "S",
    "內部專案": "I",
}
FALLBACK_TYPE_LETTER = "X"

SEQUENCE_WIDTH = 3


def type_letter(project_type):
    return PROJECT_TYPE_LETTERS.get((project_type or "").strip(), FALLBACK_TYPE_LETTER)


def week_of_year(day):
    """Week number of ``day``; week 1 runs from Jan 1 to the first Saturday."""
    day_of_year = day.timetuple().tm_yday
    # date.weekday() is Monday=0; shift so Sunday=0.
    jan1_weekday = (day.replace(month=1, day=1).weekday() + 1) % 7
    return math.ceil((day_of_year + jan1_weekday) / 7)


def code_prefix(project_type, day):
    return f"{type_letter(project_type)}{day.year % 100:02d}{week_of_year(day):02d}"


def parse_sequence(code, prefix):
    """Numeric suffix of ``code`` after ``<prefix>-``; malformed suffixes count as 0."""
    suffix = code[len(prefix) + 1 :]
    if not (suffix.isascii() and suffix.isdigit()):
        return 0
    return int(suffix)


def format_code(prefix, sequence):
    return f"{prefix}-{sequence:0{SEQUENCE_WIDTH}d}"


def next_project_code(project_type, today=None):
    """
    Compute the next free code for ``project_type`` in the week of ``today``.

    Soft-deleted projects still hold their sequence numbers.

    Args:
        project_type: Project type label; unknown labels map to "X"
        today: Date the code is issued for (defaults to the local date)

    Returns:
        str: e.g. "C2507-001"
    """
    if today is None:
        today = timezone.localdate()

    prefix = code_prefix(project_type, today)
    existing = (
        Project.all_objects.filter(code__startswith=f"{prefix}-")
        .order_by("-code")
        .values_list("code", flat=True)
    )
    highest = max((parse_sequence(code, prefix) for code in existing), default=0)

    return format_code(prefix, highest + 1)
