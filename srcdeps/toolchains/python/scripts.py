"""Programs run with ``python -c`` inside the Python toolchain container.

Both programs only use the standard library and the ``packaging`` distribution installed in
the image, and print JSON to standard output.
"""

SCAN_SCRIPT = r'''
import configparser, json, os, re, sys
try:
    import tomllib
except ImportError:
    tomllib = None

root = sys.argv[1]
skip = {".git", ".hg", ".svn", ".tox", ".nox", ".venv", "venv", "node_modules", "__pycache__"}
skip.update(sys.argv[2:])
metadata_names = ("pyproject.toml", "setup.cfg", "setup.py", "requirements.txt")

def project_name(d):
    p = os.path.join(d, "pyproject.toml")
    if tomllib and os.path.isfile(p):
        with open(p, "rb") as f:
            name = tomllib.load(f).get("project", {}).get("name")
        if name:
            return name
    p = os.path.join(d, "setup.cfg")
    if os.path.isfile(p):
        cfg = configparser.ConfigParser()
        cfg.read(p)
        if cfg.has_option("metadata", "name"):
            return cfg.get("metadata", "name")
    p = os.path.join(d, "setup.py")
    if os.path.isfile(p):
        with open(p, encoding="utf-8", errors="replace") as f:
            m = re.search(r"""\bname\s*=\s*['"]([^'"]+)['"]""", f.read())
        if m:
            return m.group(1)
    return None

for d, dirs, files in os.walk(root):
    rel = os.path.relpath(d, root)
    rel = "" if rel == "." else rel
    dirs[:] = sorted(x for x in dirs if x not in skip and os.path.join(rel, x) not in skip)
    name = project_name(d)
    if not name:
        continue
    meta = sorted(os.path.join(rel, x) for x in metadata_names if x in files)
    print(json.dumps({"name": name, "dir": rel, "files": meta}))
'''
"""Prints one JSON object per Python project found under ``argv[1]``."""

LIST_SCRIPT = r'''
import ast, configparser, json, os, sys
from packaging.requirements import InvalidRequirement, Requirement
try:
    import tomllib
except ImportError:
    tomllib = None

d = sys.argv[1]
specs = []

p = os.path.join(d, "pyproject.toml")
if tomllib and os.path.isfile(p):
    with open(p, "rb") as f:
        specs += tomllib.load(f).get("project", {}).get("dependencies", [])

p = os.path.join(d, "setup.cfg")
if os.path.isfile(p):
    cfg = configparser.ConfigParser()
    cfg.read(p)
    if cfg.has_option("options", "install_requires"):
        specs += cfg.get("options", "install_requires").splitlines()

p = os.path.join(d, "setup.py")
if os.path.isfile(p):
    with open(p, encoding="utf-8", errors="replace") as f:
        tree = ast.parse(f.read())
    for node in ast.walk(tree):
        if isinstance(node, ast.keyword) and node.arg == "install_requires":
            try:
                specs += list(ast.literal_eval(node.value))
            except (ValueError, TypeError, SyntaxError):
                pass

p = os.path.join(d, "requirements.txt")
if os.path.isfile(p):
    with open(p, encoding="utf-8", errors="replace") as f:
        specs += [l for l in f.read().splitlines() if not l.strip().startswith("-")]

names = []
for spec in specs:
    spec = spec.split("#", 1)[0].strip()
    if not spec:
        continue
    try:
        name = Requirement(spec).name
    except InvalidRequirement:
        print("invalid requirement: %r" % spec, file=sys.stderr)
        sys.exit(2)
    if name not in names:
        names.append(name)
print(json.dumps(names))
'''
"""Prints the JSON list of distribution names required by the project in ``argv[1]``."""
