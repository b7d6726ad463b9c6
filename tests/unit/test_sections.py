"""Tests for resume section splitting and merging of parsed parts."""

import pytest

from src.core.schemas import ContactInfo, EducationEntry, ExperienceEntry, ParsedResume
from src.parsing.sections import is_section_header, merge_resumes, section_kind, split_sections


class TestIsSectionHeader:
    @pytest.mark.parametrize(
        ("line", "expected"),
        [
            ("EXPERIENCE", True),
            ("Work Experience:", True),
            ("  Technical Skills  ", True),
            ("OPEN SOURCE", True),
            ("Jane Doe", False),
            ("SQL", False),
            ("2018 - 2022", False),
            ("A" * 50, False),
            ("Led migration of 40 services to Kubernetes", False),
        ],
    )
    def test_header_detection(self, line: str, expected: bool) -> None:
        assert is_section_header(line) is expected


class TestSectionKind:
    @pytest.mark.parametrize(
        ("title", "kind"),
        [
            ("PROFESSIONAL EXPERIENCE", "experience"),
            ("Employment History", "experience"),
            ("ACADEMIC BACKGROUND", "education"),
            ("TECHNICAL SKILLS", "skills"),
            ("CORE COMPETENCIES", "skills"),
            ("SIDE PROJECTS", "projects"),
            ("PROFESSIONAL SUMMARY", "summary"),
            ("CONTACT", "contact"),
            ("AWARDS", "other"),
        ],
    )
    def test_kind(self, title: str, kind: str) -> None:
        assert section_kind(title) == kind


class TestSplitSections:
    def test_leading_text_is_contact(self) -> None:
        text = "Jane Doe\njane@example.com\n\nEXPERIENCE\nEngineer at Acme\n\nSkills:\nPython, Go"
        sections = split_sections(text)
        assert [s.title for s in sections] == ["CONTACT", "EXPERIENCE", "Skills"]
        assert sections[0].content == "Jane Doe\njane@example.com"
        assert sections[1].kind == "experience"
        assert sections[2].content == "Python, Go"

    def test_empty_sections_dropped(self) -> None:
        sections = split_sections("SUMMARY\n\nEDUCATION\nState University")
        assert [s.title for s in sections] == ["EDUCATION"]

    def test_no_headers_single_section(self) -> None:
        sections = split_sections("just some text\nmore text")
        assert len(sections) == 1
        assert sections[0].title == "CONTACT"


class TestMergeResumes:
    def test_scalars_first_non_empty(self) -> None:
        base = ParsedResume(contact_info=ContactInfo(full_name="Jane Doe"))
        other = ParsedResume(
            contact_info=ContactInfo(full_name="J. Doe", email="jane@example.com"),
            summary="Platform engineer",
        )
        merged = merge_resumes(base, other)
        assert merged.contact_info.full_name == "Jane Doe"
        assert merged.contact_info.email == "jane@example.com"
        assert merged.summary == "Platform engineer"

    def test_lists_deduplicated(self) -> None:
        base = ParsedResume(
            experience=[ExperienceEntry(title="Engineer", company="Acme")],
            education=[EducationEntry(institution="State U", degree="BSc")],
            skills=["Python", "SQL"],
        )
        other = ParsedResume(
            experience=[
                ExperienceEntry(title="engineer", company="ACME"),
                ExperienceEntry(title="Intern", company="Globex"),
            ],
            education=[EducationEntry(institution="State U", degree="BSc")],
            skills=["sql", "Go", "go"],
        )
        merged = merge_resumes(base, other)
        assert [e.company for e in merged.experience] == ["Acme", "Globex"]
        assert len(merged.education) == 1
        assert merged.skills == ["Python", "SQL", "Go"]

    def test_inputs_unchanged(self) -> None:
        base = ParsedResume(skills=["Python"])
        merge_resumes(base, ParsedResume(skills=["Go"]))
        assert base.skills == ["Python"]
