import copy
from typing import Any, Dict

BUCKETS = (
    "functions", "variables", "classes", "interfaces", "types", "enums",
    "imports", "exports", "declarations", "modules", "namespaces",
)

REACT_BUCKETS = ("components", "hooks")

# buckets merged into `declarations` by `declare global { }`
GLOBAL_MERGE_BUCKETS = ("functions", "interfaces", "classes", "variables", "types", "enums")


class MetadataBuilder:
    """
    Accumulates declaration records for one extraction call.

    Nested module and namespace scopes get a child builder with the same
    buckets, attached to the parent once their body has been visited.
    """

    def __init__(self, react: bool = False):
        self.react = react
        self.root = self
        # per-scope bookkeeping owned by the visitor, never serialized
        self.scope_state: Dict[str, Any] = {}
        self.buckets: Dict[str, Dict[str, Any]] = {name: {} for name in BUCKETS}
        if react:
            for name in REACT_BUCKETS:
                self.buckets[name] = {}

    def __getitem__(self, bucket: str) -> Dict[str, Any]:
        return self.buckets[bucket]

    def __contains__(self, bucket: str) -> bool:
        return bucket in self.buckets

    def child(self) -> "MetadataBuilder":
        scope = MetadataBuilder(react=self.react)
        scope.root = self.root
        return scope

    def put(self, bucket: str, name: str, record: Dict[str, Any]) -> Dict[str, Any]:
        # later declarations with the same name replace earlier ones
        self.buckets[bucket][name] = record
        return record

    def get(self, bucket: str, name: str):
        return self.buckets.get(bucket, {}).get(name)

    def mark_exported(self, name: str):
        if name:
            self.buckets["exports"][name] = True

    def append_export(self, key: str, entry: Dict[str, Any]):
        self.buckets["exports"].setdefault(key, []).append(entry)

    def add_hook(self, hook_name: str, summary: Dict[str, Any]):
        if "hooks" in self.buckets:
            self.buckets["hooks"].setdefault(hook_name, []).append(summary)

    def merge_global(self, child: "MetadataBuilder"):
        declarations = self.buckets["declarations"]
        for bucket in GLOBAL_MERGE_BUCKETS:
            declarations.update(child.buckets[bucket])

    def attach_scope(self, bucket: str, name: str, child: "MetadataBuilder", is_declared: bool, is_exported: bool):
        scope = child.to_dict()
        scope["isDeclared"] = is_declared
        scope["isExported"] = is_exported
        existing = self.buckets[bucket].get(name)
        if existing:
            # namespaces may be reopened; members accumulate
            for key, value in scope.items():
                if isinstance(value, dict) and isinstance(existing.get(key), dict):
                    existing[key].update(value)
                elif isinstance(value, bool):
                    existing[key] = bool(existing.get(key)) or value
                else:
                    existing[key] = value
            return existing
        self.buckets[bucket][name] = scope
        return scope

    def to_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self.buckets)
