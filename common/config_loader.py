from __future__ import annotations
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List
import yaml
from common.errors import InvalidTree

logger = logging.getLogger(__name__)

def load_yaml(path: str | Path) -> Dict[str, Any]:
    p = Path(path)
    with p.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}

@dataclass(frozen=True)
class LoadedConfig:
    policy: Dict[str, Any]
    tree: List[Dict[str, Any]]

def load_all(
    config_path: str | Path = "config/engine.yaml",
    tree_path: str | Path = "config/budget_tree.yaml",
) -> LoadedConfig:
    policy = load_yaml(config_path)
    if not isinstance(policy, dict):
        raise ValueError(f"{config_path}: policy file must be a mapping, got {type(policy).__name__}")
    raw_tree = load_yaml(tree_path)
    if not isinstance(raw_tree, dict):
        raise InvalidTree(f"{tree_path}: tree file must be a mapping with a 'nodes' key, got {type(raw_tree).__name__}")
    nodes = raw_tree.get("nodes") or []
    if not isinstance(nodes, list):
        raise InvalidTree(f"{tree_path}: 'nodes' must be a list, got {type(nodes).__name__}")
    logger.debug("Loaded policy from %s and %d top-level nodes from %s", config_path, len(nodes), tree_path)
    return LoadedConfig(policy=policy, tree=list(nodes))
