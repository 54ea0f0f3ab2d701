from importlib import import_module

modules = [
    'auth',
    'users',
    'trees',
    'species',
    'badges',
    'admin',
    'uploads',
    'pages',
]

for m in modules:
    import_module(f'.{m}', __name__)

__all__ = modules
