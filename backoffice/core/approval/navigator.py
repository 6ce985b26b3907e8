"""Traversal over approval chains.

Every chain is a simple path: each step has at most one outgoing link,
so walking the links from the root visits the steps in execution order.
"""

from typing import Iterator, List, Optional

from backoffice.db.models import ChainLink, ChainStep


class ChainNavigator:
    """Follows chain links from a given step."""

    def next(self, step: ChainStep) -> Optional[ChainStep]:
        """The step reached through ``step``'s outgoing link, or None at the tail."""
        link = step.outgoing_link
        if link is None:
            return None
        return link.to_step

    def iter_chain(self, step: ChainStep) -> Iterator[ChainStep]:
        """Yield ``step`` and every step after it."""
        current: Optional[ChainStep] = step
        while current is not None:
            yield current
            current = self.next(current)

    def full_chain(self, root: ChainStep) -> List[ChainStep]:
        """The whole chain starting at ``root``, root included."""
        return list(self.iter_chain(root))

    def downstream_of(self, step: ChainStep) -> List[ChainStep]:
        """Steps strictly after ``step``."""
        return self.full_chain(step)[1:]

    def tail(self, root: ChainStep) -> ChainStep:
        """The last step of the chain."""
        last = root
        for last in self.iter_chain(root):
            pass
        return last

    def incoming_link(self, step: ChainStep) -> Optional[ChainLink]:
        """The link into ``step``; its authority snapshot is what the step's approver may grant."""
        return step.incoming_link
