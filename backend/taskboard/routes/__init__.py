from importlib import import_module

modules = [
    'auth',
    'boards',
    'columns',
    'tasks',
    'invites',
    'audit',
]

for m in modules:
    import_module(f'.{m}', __name__)

__all__ = modules
