"""In-memory storyboard store, partitioned by scene."""

import itertools
import logging
import threading
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from ..errors import NotFoundError, ValidationError, from_pydantic
from ..models import NodeCreate, NodePatch, SceneNode, StoryboardSnapshot
from ..models.scene import DEFAULT_CAMERA, DEFAULT_DURATION, DEFAULT_LIGHTING, utc_now

logger = logging.getLogger(__name__)


class StoryboardStore:
    """Ordered storyboard nodes keyed by opaque id.

    Nodes are grouped by scene and listed by ascending position; equal
    positions keep insertion order. Mutations for one scene are serialised on
    that scene's lock, and the id index is guarded by a store-wide lock.
    Every read returns copies, so callers never hold a live node.
    """

    def __init__(self) -> None:
        self._index_lock = threading.RLock()
        self._scene_locks: Dict[str, threading.Lock] = {}
        self._nodes: Dict[str, SceneNode] = {}
        self._order: Dict[str, int] = {}
        self._scenes: Dict[str, List[str]] = {}
        self._sequence = itertools.count()

    def _scene_lock(self, scene_id: str) -> threading.Lock:
        with self._index_lock:
            lock = self._scene_locks.get(scene_id)
            if lock is None:
                lock = self._scene_locks[scene_id] = threading.Lock()
            return lock

    def _sorted(self, node_ids) -> List[SceneNode]:
        nodes = [self._nodes[node_id] for node_id in node_ids]
        nodes.sort(key=lambda node: (node.position, self._order[node.id]))
        return [node.model_copy(deep=True) for node in nodes]

    def _lookup(self, node_id: str) -> SceneNode:
        with self._index_lock:
            node = self._nodes.get(node_id)
        if node is None:
            raise NotFoundError("Node not found", details={"node_id": node_id})
        return node

    def _insert(self, node: SceneNode) -> None:
        with self._index_lock:
            self._nodes[node.id] = node
            self._order[node.id] = next(self._sequence)
            self._scenes.setdefault(node.scene_id, []).append(node.id)

    def create(
        self,
        scene_id: str,
        description: str,
        characters: Union[List[str], str],
        action: str,
        camera: Optional[str] = None,
        lighting: Optional[str] = None,
        duration: Optional[float] = None,
        position: Optional[int] = None,
    ) -> SceneNode:
        """Create a node in a scene.

        Args:
            scene_id: Owning scene.
            description: Beat description.
            characters: Character names, or a single name.
            action: Choreographed action.
            camera: Camera option, defaults to Static.
            lighting: Lighting option, defaults to Daylight.
            duration: Seconds, defaults to 2.
            position: Display order; defaults to the scene's current node count.

        Returns:
            A copy of the stored node.

        Raises:
            ValidationError: If a required field is missing or any field is malformed.
        """
        try:
            request = NodeCreate(
                scene_id=scene_id,
                description=description,
                characters=characters,
                action=action,
                camera=camera,
                lighting=lighting,
                duration=duration,
                position=position,
            )
        except PydanticValidationError as e:
            raise from_pydantic(e, "Missing or invalid node fields") from e

        with self._scene_lock(request.scene_id):
            if request.position is None:
                request.position = self.count(request.scene_id)
            node = SceneNode(
                scene_id=request.scene_id,
                description=request.description,
                characters=request.characters,
                action=request.action,
                camera=request.camera or DEFAULT_CAMERA,
                lighting=request.lighting or DEFAULT_LIGHTING,
                duration=request.duration or DEFAULT_DURATION,
                position=request.position,
            )
            self._insert(node)

        logger.debug(f"Created {node.id} in scene {node.scene_id} at position {node.position}")
        return node.model_copy(deep=True)

    def get(self, node_id: str) -> SceneNode:
        """Return a copy of a node.

        Raises:
            NotFoundError: If the node does not exist.
        """
        return self._lookup(node_id).model_copy(deep=True)

    def list(self, scene_id: Optional[str] = None) -> List[SceneNode]:
        """List nodes by ascending position.

        Without a scene filter every node is ordered by position value alone,
        so nodes of different scenes interleave. Use list_by_scene for a
        grouped view.
        """
        with self._index_lock:
            if scene_id is None:
                return self._sorted(self._nodes)
            return self._sorted(self._scenes.get(scene_id, []))

    def list_by_scene(self) -> Dict[str, List[SceneNode]]:
        """Return nodes grouped by scene, scenes in first-creation order."""
        with self._index_lock:
            return {
                scene_id: self._sorted(node_ids)
                for scene_id, node_ids in self._scenes.items()
                if node_ids
            }

    def scene_ids(self) -> List[str]:
        with self._index_lock:
            return [scene_id for scene_id, node_ids in self._scenes.items() if node_ids]

    def count(self, scene_id: Optional[str] = None) -> int:
        with self._index_lock:
            if scene_id is None:
                return len(self._nodes)
            return len(self._scenes.get(scene_id, []))

    def update(self, node_id: str, patch: Union[NodePatch, Dict[str, Any]]) -> SceneNode:
        """Apply a partial update to a node.

        Only fields present in the patch are written; a None value counts as
        not supplied. A present position, including 0, is applied.
        updated_at is refreshed even for an empty patch.

        Args:
            node_id: Node to update.
            patch: NodePatch or a plain dict of fields.

        Returns:
            A copy of the updated node.

        Raises:
            NotFoundError: If the node does not exist.
            ValidationError: If a supplied value is malformed or scene_id changes.
        """
        if not isinstance(patch, NodePatch):
            try:
                patch = NodePatch.model_validate(patch or {})
            except PydanticValidationError as e:
                raise from_pydantic(e, "Invalid node update") from e

        current = self._lookup(node_id)
        if patch.scene_id is not None and patch.scene_id != current.scene_id:
            raise ValidationError(
                "scene_id cannot be changed",
                details={"node_id": node_id, "scene_id": current.scene_id},
            )

        with self._scene_lock(current.scene_id):
            current = self._lookup(node_id)
            changes = patch.changes()
            changes["updated_at"] = utc_now()
            updated = current.model_copy(update=changes)
            with self._index_lock:
                self._nodes[node_id] = updated

        logger.debug(f"Updated {node_id}: {sorted(changes)}")
        return updated.model_copy(deep=True)

    def delete(self, node_id: str) -> None:
        """Remove a node. Remaining positions are left untouched.

        Raises:
            NotFoundError: If the node does not exist.
        """
        node = self._lookup(node_id)
        with self._scene_lock(node.scene_id):
            with self._index_lock:
                if node_id not in self._nodes:
                    raise NotFoundError("Node not found", details={"node_id": node_id})
                del self._nodes[node_id]
                del self._order[node_id]
                self._scenes[node.scene_id].remove(node_id)
        logger.debug(f"Deleted {node_id} from scene {node.scene_id}")

    def reorder(self, scene_id: str, node_ids: List[str]) -> List[SceneNode]:
        """Assign positions 0..n-1 to a scene's nodes in the given order.

        Raises:
            NotFoundError: If the scene has never held nodes.
            ValidationError: If node_ids is not exactly the scene's node set.
        """
        with self._index_lock:
            known = scene_id in self._scenes
        if not known:
            raise NotFoundError("Scene not found", details={"scene_id": scene_id})

        with self._scene_lock(scene_id):
            with self._index_lock:
                current = self._scenes[scene_id]
                if len(node_ids) != len(set(node_ids)) or set(node_ids) != set(current):
                    raise ValidationError(
                        "node_ids must list every node of the scene exactly once",
                        details={"scene_id": scene_id, "expected": len(current)},
                    )
                now = utc_now()
                for position, node_id in enumerate(node_ids):
                    self._nodes[node_id] = self._nodes[node_id].model_copy(
                        update={"position": position, "updated_at": now}
                    )
                return self._sorted(current)

    def clear(self) -> None:
        with self._index_lock:
            self._nodes.clear()
            self._order.clear()
            self._scenes.clear()
            self._scene_locks.clear()

    def snapshot(self, project_name: str) -> StoryboardSnapshot:
        """Export the storyboard grouped by scene."""
        return StoryboardSnapshot(project_name=project_name, scenes=self.list_by_scene())

    def load_snapshot(self, snapshot: StoryboardSnapshot) -> int:
        """Restore nodes from a snapshot, keeping ids, timestamps and positions.

        Every node is checked before any is inserted, so a rejected snapshot
        leaves the store unchanged.

        Returns:
            Number of nodes loaded.

        Raises:
            ValidationError: If a node id is repeated or already exists, or a
                node sits under the wrong scene.
        """
        nodes = []
        for scene_id, scene_nodes in snapshot.scenes.items():
            for node in scene_nodes:
                if node.scene_id != scene_id:
                    raise ValidationError(
                        f"Node {node.id} is filed under scene {scene_id} "
                        f"but belongs to {node.scene_id}"
                    )
                nodes.append(node)

        with self._index_lock:
            seen = set()
            for node in nodes:
                if node.id in seen or node.id in self._nodes:
                    raise ValidationError("Duplicate node id", details={"node_id": node.id})
                seen.add(node.id)
            for node in nodes:
                self._insert(node.model_copy(deep=True))

        logger.info(f"Loaded {len(nodes)} nodes from snapshot '{snapshot.project_name}'")
        return len(nodes)
