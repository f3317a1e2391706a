"""Dependency-safe ordering of plan operations."""

from modelsync.services.model_state import NormalizedBone, PlanOp

OP_PRIORITY = {
    "create_bone": 10,
    "update_bone": 20,
    "create_cube": 30,
    "update_cube": 40,
    "delete_cube": 50,
    "delete_bone": 60,
}

BONE_OPS = {"create_bone", "update_bone"}


def bone_order(bones: list[NormalizedBone]) -> dict[str, int]:
    """Position of each bone in a parent-first walk of the desired hierarchy."""
    by_id = {bone.id: bone for bone in bones}
    order: dict[str, int] = {}

    def visit(bone_id: str, stack: set[str]) -> None:
        if bone_id in order or bone_id in stack:
            return
        stack.add(bone_id)
        bone = by_id.get(bone_id)
        if bone is not None and bone.parent_id:
            visit(bone.parent_id, stack)
        order[bone_id] = len(order)
        stack.discard(bone_id)

    for bone in bones:
        visit(bone.id, set())
    return order


def sort_ops(ops: list[PlanOp], bones: list[NormalizedBone]) -> list[PlanOp]:
    """Order ops so an applier never references a bone that does not exist yet.

    Bone creates and updates form one group ordered parent-before-child; then
    cube creates, cube updates, cube deletes and finally bone deletes. The sort
    is stable, so ties keep their planning order.
    """
    order = bone_order(bones)

    def sort_key(op: PlanOp) -> tuple[int, int]:
        if op.op in BONE_OPS:
            return OP_PRIORITY["create_bone"], order.get(op.bone.id, 0)
        return OP_PRIORITY.get(op.op, 100), 0

    return sorted(ops, key=sort_key)
