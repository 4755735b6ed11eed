"""
Group Manager - composite elements that move and select as a unit.

A group is an ordinary scene element with kind "group"; its members are its
children in the scene hierarchy. Member geometry is stored relative to the
group's top-left corner, so moving the group moves everything inside it.

Group bounds are computed once at creation (union of members plus padding)
and are not tracked afterwards. A group with fewer than 2 members is
dissolved automatically.
"""

import logging
from typing import Iterable, List, Optional

from src.edit.constants import GROUP_PADDING
from src.edit.events import EventEmitter
from src.scene.model import GROUP_KIND, Element, Rect
from src.scene.protocol import SceneAccessor

logger = logging.getLogger(__name__)

MIN_GROUP_SIZE = 2


class GroupManager:
    """Creates, edits and dissolves groups in a scene."""

    def __init__(self, scene: SceneAccessor, padding: float = GROUP_PADDING):
        self._scene = scene
        self.padding = padding
        self._counter = 0
        self.events = EventEmitter(['created', 'destroyed', 'renamed', 'changed'])

    # --- Queries ---

    def is_group(self, element_id: Optional[str]) -> bool:
        if element_id is None:
            return False
        element = self._scene.get_element(element_id)
        return element is not None and element.is_group

    def get_group(self, group_id: str) -> Optional[Element]:
        element = self._scene.get_element(group_id)
        return element if element is not None and element.is_group else None

    def get_all_groups(self) -> List[Element]:
        return [e for e in self._scene.get_all_elements() if e.is_group]

    def get_members(self, group_id: str) -> List[str]:
        if not self.is_group(group_id):
            return []
        return self._scene.get_children(group_id)

    def get_group_of_element(self, element_id: str) -> Optional[str]:
        """The element's direct parent, if that parent is a group."""
        element = self._scene.get_element(element_id)
        if element is None or not self.is_group(element.parent_id):
            return None
        return element.parent_id

    def is_in_group(self, element_id: str) -> Optional[str]:
        """Walk the parent chain and return the nearest enclosing group id."""
        element = self._scene.get_element(element_id)
        parent_id = element.parent_id if element else None
        while parent_id is not None:
            parent = self._scene.get_element(parent_id)
            if parent is None:
                return None
            if parent.is_group:
                return parent_id
            parent_id = parent.parent_id
        return None

    # --- Validation ---

    def validate(self, element_ids: Iterable[str]) -> Optional[str]:
        """
        Check grouping preconditions.

        Returns:
            None when the ids can be grouped, otherwise a message for the user
        """
        ids = list(dict.fromkeys(element_ids))
        if len(ids) < MIN_GROUP_SIZE:
            return f"Select at least {MIN_GROUP_SIZE} elements to group"
        parents = set()
        for element_id in ids:
            element = self._scene.get_element(element_id)
            if element is None:
                return f"Element {element_id} no longer exists"
            if element.locked:
                return "Locked elements cannot be grouped"
            parents.add(element.parent_id)
        if len(parents) > 1:
            return "Elements must share the same parent to be grouped"
        return None

    # --- Create / destroy ---

    def create_group(self, element_ids: Iterable[str], name: Optional[str] = None) -> Optional[str]:
        """
        Wrap elements in a new group.

        The group takes the sibling slot of its frontmost member; members
        keep their relative z-order inside it.

        Returns:
            The new group id, or None if preconditions fail
        """
        ids = list(dict.fromkeys(element_ids))
        problem = self.validate(ids)
        if problem:
            logger.warning(f"create_group rejected: {problem}")
            return None

        parent_id = self._scene.get_parent(ids[0])
        siblings = self._scene.get_children(parent_id)
        members = sorted(ids, key=siblings.index)
        bounds = Rect.union(self._scene.get_geometry(m) for m in members).padded(self.padding)

        self._counter += 1
        group_id = self._scene.generate_id("group")
        group = Element(
            id=group_id,
            geometry=bounds,
            parent_id=parent_id,
            kind=GROUP_KIND,
            name=name or f"Group {self._counter}",
        )
        self._scene.add_element(group, index=siblings.index(members[-1]) + 1)

        for member_id in members:
            local = self._scene.get_geometry(member_id)
            self._scene.set_parent(member_id, group_id)
            self._scene.set_geometry(member_id, local.translated(-bounds.x, -bounds.y))

        logger.info(f"Created group {group_id} with {len(members)} members")
        self.events.emit('created', {'group_id': group_id, 'element_ids': members})
        self.events.emit('changed', {'group_id': group_id})
        return group_id

    def destroy_group(self, group_id: str) -> List[str]:
        """
        Dissolve a group, putting its members back in the group's parent.

        Members take over the group's sibling slot, in their inner order, and
        keep their canvas position.

        Returns:
            The released member ids
        """
        group = self.get_group(group_id)
        if group is None:
            logger.warning(f"destroy_group: {group_id} is not a group")
            return []

        parent_id = group.parent_id
        slot = self._scene.get_children(parent_id).index(group_id)
        members = self._scene.get_children(group_id)
        for offset, member_id in enumerate(members):
            local = self._scene.get_geometry(member_id)
            self._scene.set_parent(member_id, parent_id, slot + offset)
            self._scene.set_geometry(member_id, local.translated(group.geometry.x, group.geometry.y))
        self._scene.remove_element(group_id)

        logger.info(f"Destroyed group {group_id}, released {len(members)} members")
        self.events.emit('destroyed', {'group_id': group_id, 'element_ids': members})
        self.events.emit('changed', {'group_id': group_id})
        return members

    def dissolve_if_undersized(self, group_id: Optional[str]) -> bool:
        """
        Destroy the group if it has fewer than 2 members.

        An empty group leaves a hole in its parent, so the check repeats on
        the parent group and up the ancestor chain.
        """
        if not self.is_group(group_id):
            return False
        if len(self._scene.get_children(group_id)) >= MIN_GROUP_SIZE:
            return False
        logger.debug(f"Group {group_id} fell below {MIN_GROUP_SIZE} members, dissolving")
        parent_id = self._scene.get_parent(group_id)
        self.destroy_group(group_id)
        self.dissolve_if_undersized(parent_id)
        return True

    def destroy_all(self) -> int:
        count = 0
        for group in self.get_all_groups():
            if self.is_group(group.id):
                self.destroy_group(group.id)
                count += 1
        return count

    # --- Membership ---

    def add_to_group(self, group_id: str, element_id: str) -> bool:
        """Move an element into a group, keeping its canvas position."""
        if not self.is_group(group_id):
            logger.warning(f"add_to_group: {group_id} is not a group")
            return False
        element = self._scene.get_element(element_id)
        if element is None or element.locked:
            logger.warning(f"add_to_group: {element_id} missing or locked")
            return False
        if element.parent_id == group_id:
            return True

        absolute = self._scene.absolute_rect(element_id)
        old_parent = element.parent_id
        try:
            self._scene.set_parent(element_id, group_id)
        except ValueError as e:
            logger.warning(f"add_to_group rejected: {e}")
            return False
        gx, gy = self._scene.parent_origin(group_id)
        self._scene.set_geometry(element_id, absolute.translated(-gx, -gy))

        self.events.emit('changed', {'group_id': group_id})
        self.dissolve_if_undersized(old_parent)
        return True

    def remove_from_group(self, element_id: str) -> bool:
        """
        Take an element out of its group, placing it just in front of the group.

        The group is dissolved if fewer than 2 members remain, and so is any
        enclosing group left undersized by that.
        """
        group_id = self.get_group_of_element(element_id)
        if group_id is None:
            logger.debug(f"remove_from_group: {element_id} is not in a group")
            return False

        absolute = self._scene.absolute_rect(element_id)
        outer = self._scene.get_parent(group_id)
        slot = self._scene.get_children(outer).index(group_id)
        self._scene.set_parent(element_id, outer, slot + 1)
        ox, oy = self._scene.parent_origin(outer)
        self._scene.set_geometry(element_id, absolute.translated(-ox, -oy))

        self.events.emit('changed', {'group_id': group_id})
        self.dissolve_if_undersized(group_id)
        return True

    def rename_group(self, group_id: str, name: str) -> bool:
        if not self.is_group(group_id):
            return False
        self._scene.set_name(group_id, name)
        self.events.emit('renamed', {'group_id': group_id, 'name': name})
        return True
