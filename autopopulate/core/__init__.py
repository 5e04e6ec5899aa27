from .fields import FieldDef, FieldDescriptor, field, ref, array, embedded, computed
from .directives import Skip, StaticOptions, Dynamic, classify, resolve_directive
from .walker import DiscoveredPath, DEFAULT_MAX_DEPTH, discover, each_path_recursive
from .planner import OperationContext, plan, is_enabled, depth_limits, ceiling_reached
from .hooks import HookRegistry, register_before, register_after

__all__ = [
    'FieldDef', 'FieldDescriptor', 'field', 'ref', 'array', 'embedded', 'computed',
    'Skip', 'StaticOptions', 'Dynamic', 'classify', 'resolve_directive',
    'DiscoveredPath', 'DEFAULT_MAX_DEPTH', 'discover', 'each_path_recursive',
    'OperationContext', 'plan', 'is_enabled', 'depth_limits', 'ceiling_reached',
    'HookRegistry', 'register_before', 'register_after',
]
