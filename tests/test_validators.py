"""Tests for entity, upload and status validators."""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from verkove.validators import (
    validate_base_design, validate_order_specs, validate_status_transition,
    validate_upload, validate_entity,
)


def _design(**overrides):
    data = {
        "name": "Classic Solitaire",
        "category": "rings",
        "description": "Timeless ring",
        "image_url": "https://example.com/ring.jpg",
        "specifications": {
            "materials": ["Platinum", "Diamond"],
            "dimensions": {"width": "10mm", "height": "15mm", "depth": "5mm"},
            "weight": "3.2g",
        },
    }
    data.update(overrides)
    return data


class TestBaseDesignValidator:
    def test_valid(self):
        ok, errs = validate_base_design(_design())
        assert ok and not errs

    def test_no_specifications_is_fine(self):
        ok, errs = validate_base_design(_design(specifications=None))
        assert ok

    def test_unknown_category(self):
        ok, errs = validate_base_design(_design(category="tiaras"))
        assert not ok
        assert any("category" in e for e in errs)

    def test_materials_must_be_strings(self):
        specs = _design()["specifications"] | {"materials": "Gold"}
        ok, errs = validate_base_design(_design(specifications=specs))
        assert not ok

    def test_extra_dimension(self):
        specs = _design()["specifications"] | {"dimensions": {"width": "1mm", "radius": "2mm"}}
        ok, errs = validate_base_design(_design(specifications=specs))
        assert not ok

    def test_not_dict(self):
        ok, errs = validate_base_design(["ring"])
        assert not ok


class TestUploadValidator:
    def test_valid(self):
        ok, errs = validate_upload("image/png", 1024, 10 * 1024 * 1024)
        assert ok

    def test_wrong_type(self):
        ok, errs = validate_upload("application/pdf", 1024, 10 * 1024 * 1024)
        assert not ok
        assert any("image" in e for e in errs)

    def test_too_large(self):
        ok, errs = validate_upload("image/jpeg", 11 * 1024 * 1024, 10 * 1024 * 1024)
        assert any("too large" in e for e in errs)

    def test_empty(self):
        ok, errs = validate_upload("image/jpeg", 0, 100)
        assert not ok


class TestOrderSpecsValidator:
    def test_valid(self):
        ok, errs = validate_order_specs({
            "materials": ["Gold"], "weight": "5g", "finish": "High Polish",
            "timeline": "4-6 weeks", "price": 1500,
        })
        assert ok

    def test_negative_price(self):
        ok, errs = validate_order_specs({
            "materials": ["Gold"], "weight": "5g", "finish": "Matte",
            "timeline": "2 weeks", "price": -1,
        })
        assert not ok

    def test_no_materials(self):
        ok, errs = validate_order_specs({"materials": [], "price": 10})
        assert any("materials" in e for e in errs)


class TestStatusTransitions:
    def test_draft_to_manufacturing(self):
        assert validate_status_transition("draft", "manufacturing")[0]

    def test_manufacturing_noop(self):
        assert validate_status_transition("manufacturing", "manufacturing")[0]

    def test_to_final(self):
        assert validate_status_transition("draft", "final")[0]
        assert validate_status_transition("manufacturing", "final")[0]

    def test_no_way_back(self):
        ok, errs = validate_status_transition("manufacturing", "draft")
        assert not ok

    def test_unknown_status(self):
        ok, errs = validate_status_transition("draft", "shipped")
        assert not ok


class TestRegistryDispatch:
    def test_unknown_kind(self):
        ok, errs = validate_entity("unknown", {})
        assert ok  # no validator = pass

    def test_dispatch(self):
        ok, errs = validate_entity("base_design", _design())
        assert ok
