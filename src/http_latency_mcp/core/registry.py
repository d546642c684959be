from __future__ import annotations
import importlib
from dataclasses import dataclass
from typing import Any, Dict, List
from .classifier_base import Classifier


@dataclass
class LoadedClassifier:
    """
    Wrapper for a loaded classifier instance.
    """
    name: str
    import_path: str
    instance: Classifier


class ClassifierRegistry:
    """
    Holds loaded classifier instances.

    Import string format:
      "some.module.path:factory_function"

    Example:
      "http_latency_mcp.classifiers.dpkt_http.classifier:build_classifier"
    """

    def __init__(self):
        self._classifiers: Dict[str, LoadedClassifier] = {}

    def register(self, classifier: Classifier, import_path: str = "") -> None:
        if classifier.name in self._classifiers:
            raise ValueError(f"duplicate classifier name {classifier.name}")
        self._classifiers[classifier.name] = LoadedClassifier(
            name=classifier.name, import_path=import_path, instance=classifier
        )

    def _loaded(self, name: str) -> LoadedClassifier:
        if name not in self._classifiers:
            raise KeyError(f"classifier not loaded {name}")
        return self._classifiers[name]

    def get(self, name: str) -> Classifier:
        return self._loaded(name).instance

    def describe(self, name: str) -> Dict[str, Any]:
        """
        Status counters of a loaded classifier plus where it was loaded from.
        """
        loaded = self._loaded(name)
        out = dict(loaded.instance.status())
        out["import_path"] = loaded.import_path
        return out

    def list(self) -> List[str]:
        return sorted(self._classifiers.keys())

    def load_from_import_paths(self, import_paths: List[str]) -> None:
        for path in import_paths:
            module_path, factory_name = path.split(":")
            module = importlib.import_module(module_path)
            factory = getattr(module, factory_name)
            self.register(factory(), import_path=path)
