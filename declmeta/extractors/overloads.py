from typing import Any, Dict, List


def overload_slot(record: Dict[str, Any]) -> Dict[str, Any]:
    """The body-less view of a signature record stored under ``overloadN``."""
    return_type = record.get("returnType", "any")
    return {
        "params": [
            {"name": p["name"], "type": p["type"], "optional": p["optional"]}
            for p in record.get("parameters", [])
        ],
        "parameters": list(record.get("parameters", [])),
        "returnType": return_type,
        "returnResult": [return_type],
        "genericsTypes": list(record.get("genericsTypes", [])),
    }


class OverloadReconciler:
    """
    Merges same-named signatures and implementations within one scope.

    Signatures without a body are buffered as ``overload0..N-1``; the first
    declaration with a body becomes the canonical record and takes over the
    buffered slots. A later body-bearing declaration replaces the canonical
    fields and keeps the slots.
    """

    def __init__(self, bucket: Dict[str, Any]):
        self.bucket = bucket
        self.slots: Dict[str, List[Dict[str, Any]]] = {}

    def add(self, name: str, record: Dict[str, Any], has_body: bool) -> Dict[str, Any]:
        slots = self.slots.setdefault(name, [])
        if has_body:
            return self._resolve(name, record, slots)

        slots.append(overload_slot(record))
        current = self.bucket.get(name)
        if current is None:
            # signature-only names (ambient files) keep the first signature's shape
            current = dict(record)
            current.pop("body", None)
            self.bucket[name] = current
        current[f"overload{len(slots) - 1}"] = slots[-1]
        return current

    def _resolve(self, name: str, record: Dict[str, Any], slots: List[Dict[str, Any]]) -> Dict[str, Any]:
        for index, slot in enumerate(slots):
            record[f"overload{index}"] = slot
        self.bucket[name] = record
        return record
