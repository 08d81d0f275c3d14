"""
Transformation Flow Module

- FlowGraph: value-typed graph of sources, functions, constants and conditionals
- save_flow / restore_flow: conversion to and from FieldMapping
- FlowEditorSession: editing lifecycle for one target field
"""

from .graph import (
    FlowGraph,
    GraphNode,
    GraphEdge,
    NodeKind,
    SourceFieldData,
    TargetFieldData,
    FunctionData,
    ConstantData,
    ConditionalData,
    TARGET_NODE_ID,
)
from .persistence import save_flow, restore_flow
from .editor import FlowEditorSession, EditorState

__all__ = [
    "FlowGraph",
    "GraphNode",
    "GraphEdge",
    "NodeKind",
    "SourceFieldData",
    "TargetFieldData",
    "FunctionData",
    "ConstantData",
    "ConditionalData",
    "TARGET_NODE_ID",
    "save_flow",
    "restore_flow",
    "FlowEditorSession",
    "EditorState",
]
