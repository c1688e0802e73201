import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.editor import (  # noqa: E402
    IndexOutOfRange,
    InvalidPath,
    SECTION_SPECS,
    SectionKind,
    UnknownSection,
    add_item,
    remove_item,
    lookup_section,
    update_scalar,
    validate,
)
from app.schemas.resume import BasicDetails, Education, Experience, ResumeRecord  # noqa: E402


def _record() -> ResumeRecord:
    return ResumeRecord(
        basic_details=BasicDetails(name="Olivia Sanchez", email="hello@example.com"),
        about="Marketing manager.",
        education=[Education(institution="Borcelle University", degree="BBA")],
        experience=[
            Experience(job_title="Manager", employer="Ginyard", description="Led campaigns."),
            Experience(job_title="Designer", employer="Wardiere", description="Drew layouts."),
            Experience(job_title="Intern", employer="Wardiere", description="Helped."),
        ],
        skills=["Branding", "Leadership"],
    )


class SectionTableTests(unittest.TestCase):
    def test_every_record_field_has_exactly_one_section(self):
        attributes = [spec.attribute for spec in SECTION_SPECS.values()]
        self.assertEqual(sorted(attributes), sorted(ResumeRecord.model_fields))
        for kind in SectionKind:
            self.assertIs(lookup_section(kind.value), SECTION_SPECS[kind])
            self.assertIs(lookup_section(SECTION_SPECS[kind].attribute), SECTION_SPECS[kind])


class UpdateScalarTests(unittest.TestCase):
    def test_update_nested_object_field_by_alias_and_attribute(self):
        record = _record()
        updated = update_scalar(record, SectionKind.BASIC_DETAILS, "title", "Marketing Lead")
        self.assertEqual(updated.basic_details.title, "Marketing Lead")
        self.assertEqual(record.basic_details.title, "")
        self.assertIs(updated.experience, record.experience)
        self.assertIs(updated.education, record.education)

    def test_update_repeated_item_keeps_siblings_by_identity(self):
        record = _record()
        updated = update_scalar(record, "experience", "jobTitle", "Senior Manager", index=0)
        self.assertEqual(updated.experience[0].job_title, "Senior Manager")
        self.assertEqual(updated.experience[0].employer, "Ginyard")
        self.assertIs(updated.experience[1], record.experience[1])
        self.assertIs(updated.experience[2], record.experience[2])
        self.assertIs(updated.basic_details, record.basic_details)
        self.assertEqual(record.experience[0].job_title, "Manager")

    def test_update_scalar_section_and_string_items(self):
        record = _record()
        updated = update_scalar(record, SectionKind.ABOUT, None, "New summary")
        self.assertEqual(updated.about, "New summary")
        skills = update_scalar(updated, SectionKind.SKILLS, None, "Brand strategy", index=0)
        self.assertEqual(skills.skills, ["Brand strategy", "Leadership"])
        self.assertIs(skills.experience, record.experience)

    def test_same_value_returns_same_record(self):
        record = _record()
        self.assertIs(update_scalar(record, "about", None, record.about), record)
        self.assertIs(update_scalar(record, "experience", "employer", "Ginyard", index=0), record)

    def test_invalid_paths(self):
        record = _record()
        with self.assertRaises(InvalidPath):
            update_scalar(record, "hobbies", None, "chess")
        with self.assertRaises(InvalidPath):
            update_scalar(record, "experience", "salary", "1", index=0)
        with self.assertRaises(InvalidPath):
            update_scalar(record, "experience", "jobTitle", "x")
        with self.assertRaises(InvalidPath):
            update_scalar(record, "basicDetails", "name", "x", index=0)
        with self.assertRaises(InvalidPath):
            update_scalar(record, "about", "text", "x")
        with self.assertRaises(InvalidPath):
            update_scalar(record, "basicDetails", "name", 42)

    def test_index_out_of_range(self):
        record = _record()
        with self.assertRaises(IndexOutOfRange) as ctx:
            update_scalar(record, "experience", "jobTitle", "x", index=3)
        self.assertEqual(ctx.exception.path, "experience.3.jobTitle")
        with self.assertRaises(IndexOutOfRange):
            update_scalar(record, "education", "degree", "x", index=-1)


class AddRemoveTests(unittest.TestCase):
    def test_add_appends_fully_defaulted_template(self):
        record = _record()
        updated = add_item(record, SectionKind.EDUCATION)
        self.assertEqual(len(updated.education), 2)
        self.assertEqual(updated.education[-1], Education())
        dumped = updated.education[-1].model_dump(by_alias=True)
        self.assertEqual(
            set(dumped),
            {"institution", "degree", "specialization", "startDate", "endDate", "location", "cgpa", "percentage"},
        )
        self.assertTrue(all(value == "" for value in dumped.values()))

    def test_add_string_item(self):
        updated = add_item(_record(), "skills")
        self.assertEqual(updated.skills, ["Branding", "Leadership", ""])

    def test_add_then_remove_restores_section(self):
        record = _record()
        added = add_item(record, "experience")
        restored = remove_item(added, "experience", len(added.experience) - 1)
        self.assertEqual(restored.experience, record.experience)
        self.assertEqual(restored, record)

    def test_remove_shifts_later_items_without_reordering(self):
        record = _record()
        updated = remove_item(record, SectionKind.EXPERIENCE, 0)
        self.assertEqual([item.job_title for item in updated.experience], ["Designer", "Intern"])
        self.assertIs(updated.experience[0], record.experience[1])

    def test_removing_last_item_leaves_empty_section(self):
        updated = remove_item(_record(), "education", 0)
        self.assertEqual(updated.education, [])
        with self.assertRaises(IndexOutOfRange):
            remove_item(updated, "education", 0)

    def test_unknown_sections(self):
        record = _record()
        with self.assertRaises(UnknownSection):
            add_item(record, "hobbies")
        with self.assertRaises(UnknownSection):
            add_item(record, SectionKind.ABOUT)
        with self.assertRaises(UnknownSection):
            remove_item(record, "basicDetails", 0)


class ValidateTests(unittest.TestCase):
    def test_valid_record_has_no_errors(self):
        self.assertEqual(validate(_record()), {})

    def test_required_fields_and_email_pattern(self):
        record = ResumeRecord(basic_details=BasicDetails(email="not-an-email"))
        errors = validate(record)
        self.assertEqual(set(errors), {"basicDetails.name", "basicDetails.email"})
        self.assertIn("valid email", errors["basicDetails.email"])

        errors = validate(ResumeRecord())
        self.assertEqual(errors["basicDetails.email"], "Email is required.")

    def test_item_errors_use_index_and_alias(self):
        record = add_item(add_item(_record(), "experience"), "skills")
        errors = validate(record)
        self.assertEqual(errors["experience.3.jobTitle"], "Job title is required.")
        self.assertEqual(errors["experience.3.employer"], "Employer is required.")
        self.assertIn("skills.2", errors)
        self.assertNotIn("experience.0.jobTitle", errors)


if __name__ == "__main__":
    unittest.main()
