"""
Job description text normalizer.

Turns the raw text content of a DOM element into consistently formatted
plain text: leaked script and boilerplate are stripped, whitespace is
normalized, trailing metadata footers and leading title/company lines are
dropped, and section headers are separated by blank lines.

The stages run in a fixed order; later stages rely on the output of earlier
ones (header spacing assumes the footer has already been truncated, for
example). The pattern tables are tuned against real job boards and are kept
as named module constants so callers can subclass ``ContentNormalizer`` and
override them.
"""

from __future__ import annotations

import re
from typing import List, Pattern, Sequence, Tuple

# ============================================================================
# Stage 1: leaked script / structured-data remnants
# ============================================================================

SCRIPT_REMNANT_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(r"window\.addEventListener.*?\}\);?", re.DOTALL),
    re.compile(r"\$\.ajax\(\{[^}]*\}\);?"),
    re.compile(r"var\s+\w+\s*=\s*[\"'][^\"']*[\"'];?"),
    re.compile(r"function\s*\([^)]*\)\s*\{[^}]*\}"),
    # JSON-LD blocks
    re.compile(r"\{\s*\"@context\"[\s\S]*?\}\s*\]"),
    re.compile(r"\{\s*\"@type\"[\s\S]*?\}"),
    re.compile(r"\[?\s*\{\s*\"jobLocation\"[\s\S]*?\}\s*\]?"),
)

# ============================================================================
# Stage 2: boilerplate phrases and UI chrome
# ============================================================================

BOILERPLATE_PATTERNS: Tuple[Pattern[str], ...] = (
    # Leading label and doubled labels
    re.compile(r"\AJob Description\s*", re.IGNORECASE),
    re.compile(r"Job DescriptionJob Description", re.IGNORECASE),
    # Tracking codes
    re.compile(r"#LI-[A-Z0-9]+", re.IGNORECASE),
    re.compile(r"#[A-Z0-9]+-[A-Z0-9]+", re.IGNORECASE),
    # Job board names
    re.compile(r"\bSourceStack\b", re.IGNORECASE),
    re.compile(r"\bZipRecruiter\b", re.IGNORECASE),
    re.compile(r"\bDirect Employers\b", re.IGNORECASE),
    re.compile(r"\bContract\b\s*\n\s*\bFull time\b", re.IGNORECASE),
    # Navigation and alert widgets
    re.compile(r"(?:❮|‚ùÆ)\s*back to last search", re.IGNORECASE),
    re.compile(r"Back to last search", re.IGNORECASE),
    re.compile(r"Apply for this job", re.IGNORECASE),
    re.compile(r"Create alert", re.IGNORECASE),
    re.compile(r"Receive similar jobs by email", re.IGNORECASE),
    re.compile(r"No thanks,?\s*take me to the job", re.IGNORECASE),
    re.compile(r"By creating an alert.*?Cookie Use\.", re.IGNORECASE),
    re.compile(r"Stats for this job", re.IGNORECASE),
    re.compile(r"Salary comparison:?", re.IGNORECASE),
    re.compile(r"Popular searches", re.IGNORECASE),
    re.compile(r"for all:", re.IGNORECASE),
    # Salary widget labels (the figures themselves are kept)
    re.compile(r"ESTIMATED:\s*", re.IGNORECASE),
    re.compile(r"The number of jobs in each salary range", re.IGNORECASE),
    re.compile(r"This job\s*Nationalaverage\s*IT Jobsaverage\s*Californiaaverage", re.IGNORECASE),
    # Badges
    re.compile(r"\bNEW\b"),
)

# ============================================================================
# Stage 3: markup
# ============================================================================

HTML_TAG_PATTERN = re.compile(r"<[^>]*>")

# "**Title****Header:**" produced by adjacent elements with no whitespace
BOLD_COLON_HEADER_SPLIT = re.compile(r"(\*\*[^*]+\*\*)(\*\*[A-Z][^*]+:\*\*)")
BOLD_KEYWORD_HEADER_SPLIT = re.compile(
    r"(\*\*[^*]+\*\*)(\*\*(?:What|About|Overview|Summary|Description|Requirements|Qualifications"
    r"|Responsibilities|Duties|Skills|Experience|Benefits|Compensation)[^*]*\*\*)",
    re.IGNORECASE,
)

# ============================================================================
# Stage 4: whitespace
# ============================================================================

INLINE_WHITESPACE = re.compile(r"[ \t]+")
EXCESS_NEWLINES = re.compile(r"\n{4,}")

# ============================================================================
# Stage 5: trailing metadata footer markers
# ============================================================================

FOOTER_MARKERS: Tuple[Pattern[str], ...] = (
    re.compile(r"^Location$", re.IGNORECASE),
    re.compile(r"^Job Function$", re.IGNORECASE),
    re.compile(r"^Position Type$", re.IGNORECASE),
    re.compile(r"^Pay Basis$", re.IGNORECASE),
    re.compile(r"^Full Time/Part Time$", re.IGNORECASE),
    re.compile(r"^More Information:", re.IGNORECASE),
    re.compile(r"^Need Help\??:?$", re.IGNORECASE),
    re.compile(r"^Salaries$", re.IGNORECASE),
    re.compile(r"^\d{5}$"),
    re.compile(r"^For technical assistance", re.IGNORECASE),
    re.compile(r"^If you are an individual with a disability", re.IGNORECASE),
    re.compile(r"Equal Opportunity Employer", re.IGNORECASE),
)

# ============================================================================
# Stage 8: section headers
# ============================================================================

HEADER_KEYWORDS: Tuple[str, ...] = (
    "About",
    "Overview",
    "Summary",
    "Description",
    "Responsibilities",
    "Requirements",
    "Qualifications",
    "Desired",
    "Preferred",
    "Nice to Have",
    "Bonus",
    "Extra Credit",
    "Benefits",
    "Compensation",
    "What You",
    "What We",
    "Who You",
    "Skills",
    "Education",
    "Experience",
    "Projects",
    "Role",
    "Position",
    "Team",
    "Company",
    "Culture",
    "Why",
    "How",
    "Key",
    "Core",
    "Essential",
    "Other",
    "Duties",
)

MAJOR_SECTIONS: Tuple[str, ...] = (
    "Overview",
    "Responsibilities",
    "Requirements",
    "Qualifications",
    "About",
    "Description",
    "Summary",
    "Benefits",
    "Compensation",
    "Experience",
    "Skills",
)

COLON_HEADER = re.compile(r"^[A-Z][^:]{2,}:$")
ALL_CAPS_WORD = re.compile(r"^[A-Z]+$")
CAPITALIZED_WORD = re.compile(r"^[A-Z]")
KEYWORD_HEADER_MAX_LENGTH = 80
TITLE_CASE_RATIO = 0.6

# ============================================================================
# Stage 9: compensation paragraphs
# ============================================================================

SALARY_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(r"base pay range|salary range|compensation", re.IGNORECASE),
    re.compile(r"\$[\d,]+ ?- ?\$[\d,]+ per (month|year|hour)", re.IGNORECASE),
    re.compile(r"USD \$[\d,]+ ?- ?\$[\d,]+", re.IGNORECASE),
)

# ============================================================================
# Stage 10: final spacing fixes
# ============================================================================

BLANK_BEFORE_BOLD = re.compile(r"([^\n])\n(\*\*[A-Z])")
BLANK_AFTER_BOLD = re.compile(r"(\*\*[^*]+\*\*)\n([^\n*])")
BLANK_BEFORE_LABEL = re.compile(
    r"([^\n])\n((?:Requirements|Duties|Qualifications|Experience|Skills|Benefits|Compensation):)"
)


def _strip_bold(line: str) -> str:
    return line.replace("**", "").strip()


class ContentNormalizer:
    """
    Deterministic, side-effect free job description formatter.

    Subclasses may override any of the pattern tables below; the stage order
    in :meth:`normalize` is fixed.
    """

    script_patterns: Sequence[Pattern[str]] = SCRIPT_REMNANT_PATTERNS
    boilerplate_patterns: Sequence[Pattern[str]] = BOILERPLATE_PATTERNS
    footer_markers: Sequence[Pattern[str]] = FOOTER_MARKERS
    header_keywords: Sequence[str] = HEADER_KEYWORDS
    major_sections: Sequence[str] = MAJOR_SECTIONS
    salary_patterns: Sequence[Pattern[str]] = SALARY_PATTERNS

    def normalize(self, raw_text: str) -> str:
        """
        Normalize raw element text.

        Args:
            raw_text: Text content pulled from the DOM

        Returns:
            Cleaned, consistently spaced text (may be empty)
        """
        if not raw_text:
            return ""

        text = self.strip_script_remnants(raw_text)
        text = self.strip_boilerplate(text)
        text = self.strip_markup(text)
        lines = self.normalize_whitespace(text)
        lines = self.truncate_footer(lines)
        lines = self.deduplicate(lines)
        lines = self.format_sections(lines)
        return self.finalize(lines)

    # -- stages 1-3: substitution passes -----------------------------------

    def strip_script_remnants(self, text: str) -> str:
        for pattern in self.script_patterns:
            text = pattern.sub("", text)
        return text

    def strip_boilerplate(self, text: str) -> str:
        for pattern in self.boilerplate_patterns:
            text = pattern.sub("", text)
        return text

    def strip_markup(self, text: str) -> str:
        text = HTML_TAG_PATTERN.sub("", text)
        text = BOLD_COLON_HEADER_SPLIT.sub(r"\1\n\n\2", text)
        return BOLD_KEYWORD_HEADER_SPLIT.sub(r"\1\n\n\2", text)

    # -- stage 4 -----------------------------------------------------------

    def normalize_whitespace(self, text: str) -> List[str]:
        """Normalize line endings and inline whitespace, returning trimmed lines."""
        text = text.replace("\r\n", "\n")
        text = INLINE_WHITESPACE.sub(" ", text)
        text = EXCESS_NEWLINES.sub("\n\n\n", text)
        return [line.strip() for line in text.split("\n")]

    # -- stages 5-6 --------------------------------------------------------

    def is_footer_marker(self, line: str) -> bool:
        clean = _strip_bold(line)
        return any(pattern.search(clean) for pattern in self.footer_markers)

    def truncate_footer(self, lines: List[str]) -> List[str]:
        """Drop everything from the last footer marker line onwards."""
        for index in range(len(lines) - 1, -1, -1):
            if self.is_footer_marker(lines[index]):
                return lines[:index]
        return lines

    def deduplicate(self, lines: List[str]) -> List[str]:
        """Drop non-blank lines identical to the line right before them."""
        deduped: List[str] = []
        previous = ""
        for line in lines:
            if line != previous or line == "":
                deduped.append(line)
            previous = line
        return deduped

    # -- stages 7-9 --------------------------------------------------------

    def is_section_header(self, line: str) -> bool:
        """
        Heuristic header detection.

        A line is a header when it is a capitalized label ending in a colon,
        starts with a known header keyword (and is short and not a sentence),
        is one to three ALL-CAPS words, or is a short mostly Title Case line.
        """
        if not line or len(line) < 3:
            return False

        clean = _strip_bold(line)

        if COLON_HEADER.match(clean):
            return True

        lowered = clean.lower()
        if any(lowered.startswith(keyword.lower()) for keyword in self.header_keywords):
            return len(clean) < KEYWORD_HEADER_MAX_LENGTH and not clean.endswith(".")

        words = clean.split()
        if 1 <= len(words) <= 3 and len(clean) >= 4:
            if all(word == word.upper() and ALL_CAPS_WORD.match(word) for word in words):
                return True

        if 2 <= len(words) <= 8:
            capitalized = [word for word in words if CAPITALIZED_WORD.match(word)]
            if len(capitalized) / len(words) > TITLE_CASE_RATIO:
                return True

        return False

    def is_major_section(self, line: str) -> bool:
        lowered = _strip_bold(line).lower()
        return any(lowered.startswith(section.lower()) for section in self.major_sections)

    def is_salary_paragraph(self, line: str) -> bool:
        return any(pattern.search(line) for pattern in self.salary_patterns)

    def format_sections(self, lines: List[str]) -> List[str]:
        """
        Skip leading metadata, then space out section headers and salary blocks.

        Lines before the first bold token or section header are treated as
        leaked title/company/location lines and discarded.
        """
        formatted: List[str] = []
        in_salary_section = False
        found_first_content = False
        last = len(lines) - 1

        for index, line in enumerate(lines):
            previous = lines[index - 1] if index > 0 else ""
            following = lines[index + 1] if index < last else ""

            if not found_first_content:
                if not line.startswith("**") and not self.is_section_header(line):
                    continue
                found_first_content = True

            is_salary_line = self.is_salary_paragraph(line)

            if is_salary_line and not in_salary_section:
                if previous != "" and formatted:
                    formatted.extend(["", ""])
                in_salary_section = True

            if self.is_section_header(line):
                if previous != "" and formatted:
                    formatted.extend(["", ""] if self.is_major_section(line) else [""])
                formatted.append(line)
                if following != "" and not self.is_section_header(following):
                    formatted.append("")
            else:
                formatted.append(line)

            if in_salary_section and not is_salary_line and not self.is_salary_paragraph(following):
                if line != "" and following != "":
                    formatted.append("")
                in_salary_section = False

        return formatted

    # -- stage 10 ----------------------------------------------------------

    def finalize(self, lines: List[str]) -> str:
        start, end = 0, len(lines)
        while start < end and lines[start] == "":
            start += 1
        while end > start and lines[end - 1] == "":
            end -= 1

        result = "\n".join(lines[start:end])
        result = BLANK_BEFORE_BOLD.sub(r"\1\n\n\2", result)
        result = BLANK_AFTER_BOLD.sub(r"\1\n\n\2", result)
        result = EXCESS_NEWLINES.sub("\n\n\n", result)
        result = BLANK_BEFORE_LABEL.sub(r"\1\n\n\2", result)
        return result.strip()


_DEFAULT_NORMALIZER = ContentNormalizer()


def normalize(raw_text: str) -> str:
    """Normalize ``raw_text`` with the default pattern tables."""
    return _DEFAULT_NORMALIZER.normalize(raw_text)
