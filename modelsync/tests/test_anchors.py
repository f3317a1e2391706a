"""Tests for anchor validation and resolution."""

import pytest

from modelsync.errors import ModelSpecError
from modelsync.models import ModelSpec
from modelsync.services.anchors import apply_anchors
from modelsync.services.normalizer import normalize_model_spec


def normalize_spec(payload: dict):
    return normalize_model_spec(ModelSpec.model_validate(payload), 100)


def bone(normalized, bone_id):
    return next(b for b in normalized.bones if b.id == bone_id)


def cube(normalized, cube_id):
    return next(c for c in normalized.cubes if c.id == cube_id)


class TestAnchorPlacement:
    def test_bone_and_cube_share_root_anchor(self):
        normalized = normalize_spec({
            "anchors": [{"id": "root_anchor", "target": {"boneId": "root"}, "offset": [1, 2, 3]}],
            "bones": [{"id": "child", "pivotAnchorId": "root_anchor"}],
            "cubes": [{"id": "box", "from": [0, 0, 0], "to": [2, 2, 2], "centerAnchorId": "root_anchor"}],
        })
        assert bone(normalized, "child").pivot == (1.0, 2.0, 3.0)
        box = cube(normalized, "box")
        assert box.from_ == (0.0, 1.0, 2.0)
        assert box.to == (2.0, 3.0, 4.0)
        assert box.origin == (1.0, 2.0, 3.0)
        assert box.explicit.from_to is True
        assert box.explicit.origin is True
        assert bone(normalized, "child").explicit.pivot is True

    def test_cube_target_uses_center(self):
        normalized = normalize_spec({
            "anchors": [{"id": "top", "target": {"cubeId": "base"}, "offset": [0, 1, 0]}],
            "bones": [{"id": "arm", "pivotAnchorId": "top"}],
            "cubes": [{"id": "base", "from": [0, 0, 0], "to": [4, 2, 4]}],
        })
        assert bone(normalized, "arm").pivot == (2.0, 2.0, 2.0)

    def test_cube_target_uses_explicit_origin(self):
        normalized = normalize_spec({
            "anchors": [{"id": "top", "target": {"cubeId": "base"}, "offset": [0, 1, 0]}],
            "bones": [{"id": "arm", "pivotAnchorId": "top"}],
            "cubes": [{"id": "base", "from": [0, 0, 0], "to": [4, 2, 4], "origin": [0, 0, 0]}],
        })
        assert bone(normalized, "arm").pivot == (0.0, 1.0, 0.0)

    def test_anchor_without_offset(self):
        normalized = normalize_spec({
            "bones": [{"id": "hip", "pivot": [0, 12, 0]}, {"id": "leg", "parentId": "hip", "pivotAnchorId": "hip_pivot"}],
            "anchors": [{"id": "hip_pivot", "target": {"boneId": "hip"}}],
        })
        assert bone(normalized, "leg").pivot == (0.0, 12.0, 0.0)

    def test_center_and_origin_anchors_on_one_cube(self):
        normalized = normalize_spec({
            "anchors": [
                {"id": "a1", "target": {"boneId": "root"}, "offset": [10, 0, 0]},
                {"id": "a2", "target": {"boneId": "root"}, "offset": [0, 5, 0]},
            ],
            "cubes": [{
                "id": "lid", "from": [0, 0, 0], "to": [2, 2, 2],
                "centerAnchorId": "a1", "originAnchorId": "a2",
            }],
        })
        lid = cube(normalized, "lid")
        assert lid.from_ == (9.0, -1.0, -1.0)
        assert lid.to == (11.0, 1.0, 1.0)
        assert lid.origin == (0.0, 5.0, 0.0)

    def test_chained_through_anchored_cube(self):
        normalized = normalize_spec({
            "anchors": [
                {"id": "a", "target": {"cubeId": "c1"}, "offset": [0, 1, 0]},
                {"id": "b", "target": {"boneId": "root"}, "offset": [5, 0, 0]},
            ],
            "bones": [{"id": "tip", "pivotAnchorId": "a"}],
            "cubes": [{"id": "c1", "from": [0, 0, 0], "to": [2, 2, 2], "centerAnchorId": "b"}],
        })
        assert bone(normalized, "tip").pivot == (5.0, 1.0, 0.0)
        assert cube(normalized, "c1").from_ == (4.0, -1.0, -1.0)

    def test_anchor_on_anchored_bone(self):
        normalized = normalize_spec({
            "anchors": [
                {"id": "shoulder", "target": {"boneId": "root"}, "offset": [4, 22, 0]},
                {"id": "elbow", "target": {"boneId": "upper"}, "offset": [0, -6, 0]},
            ],
            "bones": [
                {"id": "lower", "parentId": "upper", "pivotAnchorId": "elbow"},
                {"id": "upper", "pivotAnchorId": "shoulder"},
            ],
        })
        assert bone(normalized, "upper").pivot == (4.0, 22.0, 0.0)
        assert bone(normalized, "lower").pivot == (4.0, 16.0, 0.0)


class TestAnchorErrors:
    def test_anchors_required_for_references(self):
        with pytest.raises(ModelSpecError, match="anchors required for id references"):
            normalize_spec({"bones": [{"id": "child", "pivotAnchorId": "missing"}]})

    def test_resolver_rejects_references_without_anchors(self):
        model = ModelSpec.model_validate({
            "cubes": [{"id": "box", "from": [0, 0, 0], "to": [1, 1, 1], "originAnchorId": "a"}]
        })
        with pytest.raises(ModelSpecError, match="anchors required for id references"):
            apply_anchors(model, {}, {})

    def test_unknown_anchor_reference(self):
        with pytest.raises(ModelSpecError, match="anchor not found: nope"):
            normalize_spec({
                "anchors": [{"id": "a", "target": {"boneId": "root"}}],
                "bones": [{"id": "child", "pivotAnchorId": "nope"}],
            })

    def test_duplicate_anchor_id(self):
        with pytest.raises(ModelSpecError, match="duplicate anchor id: a"):
            normalize_spec({
                "anchors": [
                    {"id": "a", "target": {"boneId": "root"}},
                    {"id": "a", "target": {"boneId": "root"}},
                ],
            })

    @pytest.mark.parametrize("target", [{}, {"boneId": "root", "cubeId": "box"}])
    def test_target_must_be_exactly_one(self, target):
        with pytest.raises(ModelSpecError, match="exactly one of boneId or cubeId"):
            normalize_spec({"anchors": [{"id": "a", "target": target}]})

    def test_missing_target_bone(self):
        with pytest.raises(ModelSpecError, match="anchor target bone not found: ghost"):
            normalize_spec({
                "anchors": [{"id": "a", "target": {"boneId": "ghost"}}],
                "bones": [{"id": "child", "pivotAnchorId": "a"}],
            })

    def test_missing_target_cube(self):
        with pytest.raises(ModelSpecError, match="anchor target cube not found: ghost"):
            normalize_spec({
                "anchors": [{"id": "a", "target": {"cubeId": "ghost"}}],
                "bones": [{"id": "child", "pivotAnchorId": "a"}],
            })


class TestAnchorCycles:
    def test_bone_pivot_anchored_to_itself(self):
        with pytest.raises(ModelSpecError, match="anchor cycle detected"):
            normalize_spec({
                "anchors": [{"id": "ax", "target": {"boneId": "x"}, "offset": [1, 0, 0]}],
                "bones": [{"id": "x", "pivotAnchorId": "ax"}],
            })

    def test_cube_centered_on_itself(self):
        with pytest.raises(ModelSpecError, match=r"anchor cycle detected \(cube:c\)"):
            normalize_spec({
                "anchors": [{"id": "ac", "target": {"cubeId": "c"}}],
                "cubes": [{"id": "c", "from": [0, 0, 0], "to": [1, 1, 1], "centerAnchorId": "ac"}],
            })

    def test_two_bone_cycle(self):
        with pytest.raises(ModelSpecError, match="anchor cycle detected"):
            normalize_spec({
                "anchors": [
                    {"id": "to_b", "target": {"boneId": "b"}},
                    {"id": "to_a", "target": {"boneId": "a"}},
                ],
                "bones": [
                    {"id": "a", "pivotAnchorId": "to_b"},
                    {"id": "b", "pivotAnchorId": "to_a"},
                ],
            })
