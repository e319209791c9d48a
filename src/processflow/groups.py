"""
Group hierarchy construction.

Groups are never declared by the caller. They are synthesized from the dot
segments of process names: ``a.b.c`` creates group ``a`` and group ``a.b``
(nested in ``a``) and becomes a direct member of ``a.b``. Processes without a
dot belong to the implicit root, which is never materialized as a Group.
"""

from typing import AbstractSet, Dict, Iterable, Iterator, List, Optional

from .models import Group, Process


def build_group_hierarchy(processes: Iterable[Process]) -> Dict[str, Group]:
    """
    Build the group forest for a list of processes.

    Args:
        processes: Process records.

    Returns:
        Dictionary mapping group id to Group.
    """
    groups: Dict[str, Group] = {}

    for process in processes:
        parts = process.name.split(".")
        if len(parts) <= 1:
            continue

        for i in range(1, len(parts)):
            group_path = parts[:i]
            group_id = ".".join(group_path)
            parent_id = ".".join(group_path[:-1]) if i > 1 else None

            if group_id not in groups:
                groups[group_id] = Group(
                    id=group_id, path=list(group_path), parent_id=parent_id
                )
            if parent_id is not None:
                groups[parent_id].child_group_ids.add(group_id)

        groups[".".join(parts[:-1])].direct_process_names.add(process.name)

    return groups


class GroupHierarchy:
    """
    Read-only view over the group forest with ancestry queries.

    Attributes:
        groups: Mapping of group id to Group.
    """

    def __init__(self, groups: Dict[str, Group]):
        self.groups = groups
        self._by_node_id = {group.node_id: group for group in groups.values()}

    @classmethod
    def from_processes(cls, processes: Iterable[Process]) -> "GroupHierarchy":
        return cls(build_group_hierarchy(processes))

    def __contains__(self, group_id: str) -> bool:
        return group_id in self.groups

    def __iter__(self) -> Iterator[Group]:
        return iter(self.groups.values())

    def __len__(self) -> int:
        return len(self.groups)

    def get(self, group_id: str) -> Optional[Group]:
        return self.groups.get(group_id)

    def by_node_id(self, node_id: str) -> Optional[Group]:
        """Look up a group by its ``group-`` prefixed node id."""
        return self._by_node_id.get(node_id)

    def top_level_ids(self) -> List[str]:
        """Ids of groups without a parent, sorted."""
        return sorted(g.id for g in self.groups.values() if g.parent_id is None)

    def ordered_by_depth(self, deepest_first: bool = True) -> List[Group]:
        """Groups sorted by path depth, ties broken by id."""
        sign = -1 if deepest_first else 1
        return sorted(self.groups.values(), key=lambda g: (sign * g.depth, g.id))

    def ancestors(self, group_id: str) -> List[str]:
        """Ids from the outermost ancestor down to ``group_id`` itself."""
        chain: List[str] = []
        current = self.groups.get(group_id)
        while current is not None:
            chain.append(current.id)
            current = self.groups.get(current.parent_id) if current.parent_id else None
        chain.reverse()
        return chain

    def chain_for_name(self, name: str) -> List[str]:
        """
        Ids of the groups enclosing a process name, outermost first.

        Works for names that are not known processes too (dangling upstream
        references); only prefixes that exist as groups are returned.
        """
        parts = name.split(".")
        chain = []
        for i in range(1, len(parts)):
            group_id = ".".join(parts[:i])
            if group_id in self.groups:
                chain.append(group_id)
        return chain

    def is_hidden(self, group_id: str, collapsed: AbstractSet[str]) -> bool:
        """True if a strict ancestor of ``group_id`` is collapsed."""
        return any(g in collapsed for g in self.ancestors(group_id)[:-1])

    def outermost_collapsed(
        self, chain: List[str], collapsed: AbstractSet[str]
    ) -> Optional[str]:
        """First collapsed group id in an outermost-first chain, if any."""
        for group_id in chain:
            if group_id in collapsed:
                return group_id
        return None
