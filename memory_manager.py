"""
Memory Manager for PocketCalc
Implements the memory keys (MS, M+, M-, MR, MC) on top of MemoryDatabase
and keeps the ordered list the display renders
"""
import logging
import sqlite3
from dataclasses import dataclass

from memory_database import MemorySlot
from number_formatter import format_number

logger = logging.getLogger("pocketcalc.memory_manager")


@dataclass
class MemoryItem:
    id: int
    value: float
    separator: str = "."

    @property
    def display_value(self):
        return format_number(self.value, self.separator)

    def to_dict(self):
        return {'id': self.id, 'value': self.value, 'display_value': self.display_value}


class MemoryManager:
    def __init__(self, db, decimal_separator="."):
        self.db = db
        self.decimal_separator = decimal_separator
        self.items = []

    def _to_item(self, slot):
        return MemoryItem(slot.id, slot.value, self.decimal_separator)

    def load(self):
        """Load saved slots; a storage failure leaves memory empty instead of failing startup"""
        try:
            slots = self.db.get_all()
        except sqlite3.Error:
            logger.exception("Could not load memory from %s, starting empty", self.db.db_path)
            self.items = []
            return self.items
        self.items = [self._to_item(slot) for slot in slots]
        logger.info("Loaded %d memory item(s)", len(self.items))
        return self.items

    def _insert_top(self, value):
        """Shift every slot down, then insert the new one at order 0"""
        self.db.increment_order_for_all()
        slot = MemorySlot(value=value, order=0)
        self.db.insert(slot)
        item = self._to_item(slot)
        self.items.insert(0, item)
        return item

    def _find(self, item_id):
        for index, item in enumerate(self.items):
            if item.id == item_id:
                return index, item
        raise KeyError(f"No memory item with id {item_id}")

    def _write(self, index, item, value=None):
        """Persist an item at position index; the projection changes only after the write"""
        value = item.value if value is None else value
        self.db.update(MemorySlot(id=item.id, value=value, order=index))
        item.value = value

    def store(self, value):
        """MS: save value as a new top item"""
        return self._insert_top(value)

    def add(self, value):
        """M+: add to the top item, or store value when memory is empty"""
        if not self.items:
            return self._insert_top(value)
        return self.add_to_item(self.items[0].id, value)

    def subtract(self, value):
        """M-: subtract from the top item, or store -value when memory is empty"""
        if not self.items:
            return self._insert_top(-value)
        return self.subtract_from_item(self.items[0].id, value)

    def add_to_item(self, item_id, value):
        index, item = self._find(item_id)
        self._write(index, item, item.value + value)
        return item

    def subtract_from_item(self, item_id, value):
        index, item = self._find(item_id)
        self._write(index, item, item.value - value)
        return item

    def delete_item(self, item_id):
        """Delete one item and close the gap it leaves in the order"""
        index, item = self._find(item_id)
        self.db.delete(MemorySlot(id=item.id, value=item.value, order=index))
        del self.items[index]
        for position in range(index, len(self.items)):
            self._write(position, self.items[position])
        return item

    def clear(self):
        """MC: delete every item"""
        deleted = self.db.delete_all()
        self.items = []
        return deleted

    def recall(self, item_id=None):
        """MR: value of the top item (or the given one), None when memory is empty"""
        if item_id is not None:
            return self._find(item_id)[1].value
        if not self.items:
            return None
        return self.items[0].value
