"""
Import Map -- Build Tests

Covers:
  - Core React modules are always present and never overwritten
  - Compiled files are registered under every spelling
  - Aliased imports link to the file they name
  - Relative imports resolve per importing file, in that file's scope
  - Bare packages go to the CDN
  - Missing local imports, and imports of non-script files, get a placeholder
  - A file that fails to compile is reported, not mapped, and not replaced
  - Missing stylesheets leave a comment in the style blob
  - The same snapshot always produces the same map
"""

import base64
import json

from engine.kernel.import_map import create_import_map
from engine.kernel.types import CORE_MODULES


def imports_of(result):
    return json.loads(result.import_map)["imports"]


def scope_of(result, path):
    """Relative specifiers registered for the file at `path`."""
    data = json.loads(result.import_map)
    return data.get("scopes", {}).get(data["imports"][path], {})


def module_source(url):
    assert url.startswith("data:text/javascript;base64,")
    return base64.b64decode(url.split(",", 1)[1]).decode("utf-8")


class TestCoreModules:
    def test_present_for_empty_snapshot(self):
        imports = imports_of(create_import_map({}))
        assert imports == {name: f"https://esm.sh/{target}" for name, target in CORE_MODULES.items()}

    def test_custom_cdn(self):
        imports = imports_of(create_import_map({}, cdn_url="https://cdn.example.com/"))
        assert imports["react"] == "https://cdn.example.com/react@19"

    def test_not_overwritten_by_project_imports(self):
        result = create_import_map({"/App.jsx": "import React from 'react';\nexport default () => null;"})
        assert imports_of(result)["react"] == "https://esm.sh/react@19"


class TestLocalModules:
    def test_every_spelling_shares_one_url(self, app_snapshot):
        imports = imports_of(create_import_map(app_snapshot))
        url = imports["/components/Button.jsx"]
        for key in (
            "components/Button.jsx",
            "@/components/Button.jsx",
            "/components/Button",
            "components/Button",
            "@/components/Button",
        ):
            assert imports[key] == url

    def test_relative_import_links_to_file(self, app_snapshot):
        result = create_import_map(app_snapshot)
        imports = imports_of(result)
        assert scope_of(result, "/App.jsx")["./components/Button"] == imports["/components/Button.jsx"]
        assert "./components/Button" not in imports

    def test_module_carries_compiled_code(self, app_snapshot):
        imports = imports_of(create_import_map(app_snapshot))
        source = module_source(imports["/components/Button.jsx"])
        assert 'import { jsx as _jsx } from "react/jsx-runtime";' in source
        assert '_jsx("button", { className: "btn", children: label })' in source

    def test_relative_import_from_nested_file(self):
        files = {
            "/App.jsx": "import Card from './components/Card';\nexport default () => <Card />;",
            "/components/Card.jsx": "import Title from './Title';\nexport default () => <Title />;",
            "/components/Title.jsx": "export default () => <h1>Title</h1>;",
        }
        result = create_import_map(files)
        assert scope_of(result, "/components/Card.jsx")["./Title"] == imports_of(result)["/components/Title.jsx"]
        assert "./Title" not in scope_of(result, "/App.jsx")

    def test_same_relative_specifier_in_two_directories(self):
        files = {
            "/App.jsx": "import A from './a/Panel';\nimport B from './b/Panel';\nexport default () => <A />;",
            "/a/Panel.jsx": "import Button from './Button';\nexport default () => <Button />;",
            "/a/Button.jsx": "export default () => <button>a</button>;",
            "/b/Panel.jsx": "import Button from './Button';\nexport default () => <Button />;",
            "/b/Button.jsx": "export default () => <button>b</button>;",
        }
        result = create_import_map(files)
        imports = imports_of(result)

        assert scope_of(result, "/a/Panel.jsx")["./Button"] == imports["/a/Button.jsx"]
        assert scope_of(result, "/b/Panel.jsx")["./Button"] == imports["/b/Button.jsx"]
        assert imports["/a/Button.jsx"] != imports["/b/Button.jsx"]

    def test_identical_files_get_separate_scopes(self):
        reexport = "export { default } from './Button';\n"
        files = {
            "/a/index.js": reexport,
            "/a/Button.jsx": "export default () => <i>a</i>;",
            "/b/index.js": reexport,
            "/b/Button.jsx": "export default () => <i>b</i>;",
        }
        result = create_import_map(files)
        imports = imports_of(result)

        assert imports["/a/index.js"] != imports["/b/index.js"]
        assert scope_of(result, "/a/index.js")["./Button"] == imports["/a/Button.jsx"]
        assert scope_of(result, "/b/index.js")["./Button"] == imports["/b/Button.jsx"]

    def test_index_file(self):
        files = {
            "/App.jsx": "import ui from './ui';\nexport default () => null;",
            "/ui/index.js": "export default 1;",
        }
        result = create_import_map(files)
        assert scope_of(result, "/App.jsx")["./ui"] == imports_of(result)["/ui/index.js"]

    def test_typescript_file_by_alias(self):
        files = {
            "/App.tsx": "import { cn } from '@/lib/utils';\nexport default function App() { return <div className={cn('a')} />; }",
            "/lib/utils.ts": "export function cn(...c: string[]): string { return c.join(' '); }",
        }
        imports = imports_of(create_import_map(files))
        assert imports["@/lib/utils"] == imports["/lib/utils.ts"]
        assert "string[]" not in module_source(imports["/lib/utils.ts"])


class TestPackages:
    def test_bare_specifier_goes_to_cdn(self):
        files = {"/App.jsx": "import { Heart } from 'lucide-react';\nexport default () => <Heart />;"}
        imports = imports_of(create_import_map(files))
        assert imports["lucide-react"] == "https://esm.sh/lucide-react"

    def test_scoped_subpath(self):
        files = {"/App.jsx": "import * as Dialog from '@radix-ui/react-dialog';\nexport default () => null;"}
        imports = imports_of(create_import_map(files))
        assert imports["@radix-ui/react-dialog"] == "https://esm.sh/@radix-ui/react-dialog"


class TestPlaceholders:
    def test_missing_relative_import(self):
        files = {"/App.jsx": "import Missing from './Missing';\nexport default () => <Missing />;"}
        source = module_source(scope_of(create_import_map(files), "/App.jsx")["./Missing"])
        assert "const Missing = function()" in source
        assert "export default Missing;" in source

    def test_non_script_file_gets_placeholder(self):
        files = {
            "/App.jsx": "import logo from './logo.svg';\nexport default () => <img src={logo} />;",
            "/logo.svg": "<svg/>",
        }
        result = create_import_map(files)
        assert result.errors == []
        source = module_source(scope_of(result, "/App.jsx")["./logo.svg"])
        assert "React.createElement('div', {}, null)" in source

    def test_aliased_data_file_gets_placeholder(self):
        files = {
            "/App.jsx": "import data from '@/data.json';\nexport default () => <p>{data.title}</p>;",
            "/data.json": '{"title": "x"}',
        }
        imports = imports_of(create_import_map(files))
        assert "export default" in module_source(imports["@/data.json"])
        assert imports["/data.json"] == imports["@/data.json"]

    def test_missing_alias_registers_all_forms(self):
        files = {"/App.jsx": "import Card from '@/components/Card';\nexport default () => <Card />;"}
        imports = imports_of(create_import_map(files))
        url = imports["@/components/Card"]
        assert imports["/components/Card"] == url
        assert imports["components/Card"] == url


class TestCompileFailures:
    def test_one_broken_file(self, app_snapshot):
        app_snapshot["/components/Broken.jsx"] = "export default () => <div>;"
        result = create_import_map(app_snapshot)
        imports = imports_of(result)

        assert [e.path for e in result.errors] == ["/components/Broken.jsx"]
        assert "/components/Broken.jsx" not in imports
        assert "/App.jsx" in imports
        assert "/components/Button.jsx" in imports

    def test_broken_import_target_gets_no_placeholder(self):
        files = {
            "/App.jsx": "import Broken from './Broken';\nexport default () => <Broken />;",
            "/Broken.jsx": "const = ;",
        }
        result = create_import_map(files)
        assert "./Broken" not in imports_of(result)
        assert "./Broken" not in scope_of(result, "/App.jsx")
        assert len(result.errors) == 1

    def test_to_dict(self):
        result = create_import_map({"/Broken.jsx": "const = ;"})
        data = result.to_dict()
        assert data["errors"][0]["path"] == "/Broken.jsx"
        assert data["errors"][0]["error"].startswith("/Broken.jsx: ")


class TestStyles:
    def test_existing_stylesheet(self, app_snapshot):
        result = create_import_map(app_snapshot)
        assert "/* /styles.css */\nbody { margin: 0; }" in result.styles
        assert "not found" not in result.styles

    def test_missing_stylesheet(self, app_snapshot):
        del app_snapshot["/styles.css"]
        result = create_import_map(app_snapshot)
        assert result.styles == "/* ./styles.css not found */\n"


class TestDeterminism:
    def test_same_snapshot_same_map(self, app_snapshot):
        assert create_import_map(app_snapshot) == create_import_map(dict(app_snapshot))

    def test_custom_reference(self, app_snapshot):
        seen = []

        def reference(code):
            seen.append(code)
            return f"memory://{len(seen)}"

        imports = imports_of(create_import_map(app_snapshot, reference=reference))
        assert imports["/App.jsx"] == "memory://1"
        assert imports["/components/Button.jsx"] == "memory://2"
        assert len(seen) == 2
