from typing import TypeVar, List, Any

T = TypeVar('T')


class ModelCollection(list):
    def __init__(self, items: List[T] = None):
        super().__init__(items or [])

    def to_list_dict(self) -> List[dict[str, Any]]:
        return [m.to_dict() for m in self]

    def pluck(self, column: str) -> List[Any]:
        """Get a list of values from a specific column"""
        return [model[column] for model in self]

    def first(self):
        """Get first item from collection"""
        return self[0] if len(self) > 0 else None

