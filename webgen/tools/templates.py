"""Built-in project templates for init_project.

The engine only needs a ``name → file-set`` mapping; any mapping of that
shape can be injected instead of BUILTIN_TEMPLATES. File values are either
plain strings or ``{"code": str}`` objects.
"""

import json
from typing import Any, Mapping

from webgen.messages import ProjectFiles
from webgen.tools.vfs import normalize_path

TemplateCatalog = Mapping[str, Mapping[str, Any]]


def normalize_template(files: Mapping[str, Any]) -> ProjectFiles:
    """Convert a template file set to a ProjectFiles map.

    Args:
        files: Path → content or {"code": content}

    Returns:
        Normalized ProjectFiles
    """
    normalized: ProjectFiles = {}
    for path, entry in files.items():
        code = entry if isinstance(entry, str) else entry["code"]
        normalized[normalize_path(path)] = code
    return normalized


_STATIC_INDEX = """<!DOCTYPE html>
<html lang="en">
  <head>
    <meta charset="UTF-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1.0" />
    <title>Static App</title>
    <link rel="stylesheet" href="styles.css" />
  </head>
  <body>
    <h1>Hello world</h1>
    <script src="index.js"></script>
  </body>
</html>
"""

_VANILLA_INDEX = """<!DOCTYPE html>
<html lang="en">
  <head>
    <meta charset="UTF-8" />
    <title>Vanilla App</title>
  </head>
  <body>
    <div id="app"></div>
    <script src="src/index.js"></script>
  </body>
</html>
"""

_VANILLA_MAIN = """import "./styles.css";

document.getElementById("app").innerHTML = `
<h1>Hello world</h1>
`;
"""

_VITE_REACT_APP = """export default function App() {
  const data: string = "world"

  return <h1 className="text-xl">Hello {data}</h1>
}"""

_VITE_REACT_MAIN = """import { StrictMode } from "react";
import { createRoot } from "react-dom/client";
import App from "./App";

createRoot(document.getElementById("root")!).render(
  <StrictMode>
    <App />
  </StrictMode>
);"""

_VITE_REACT_INDEX = """<!DOCTYPE html>
<html lang="en">
  <head>
    <meta charset="UTF-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1.0" />
    <title>Vite App</title>
    <script src="https://cdn.tailwindcss.com"></script>
  </head>
  <body>
    <div id="root"></div>
    <script type="module" src="/src/main.tsx"></script>
  </body>
</html>
"""

_VITE_REACT_CONFIG = """import path from "path";
import { fileURLToPath } from "url";
import react from "@vitejs/plugin-react";
import { defineConfig } from "vite";

const __filename = fileURLToPath(import.meta.url);
const __dirname = path.dirname(__filename);

export default defineConfig({
  plugins: [react()],
  resolve: {
    alias: {
      "@": path.resolve(__dirname, "src"),
    },
  },
});"""

_VITE_REACT_TSCONFIG = {
    "compilerOptions": {
        "target": "ES2020",
        "useDefineForClassFields": True,
        "lib": ["ES2020", "DOM", "DOM.Iterable"],
        "module": "ESNext",
        "skipLibCheck": True,
        "moduleResolution": "bundler",
        "allowImportingTsExtensions": True,
        "resolveJsonModule": True,
        "isolatedModules": True,
        "noEmit": True,
        "jsx": "react-jsx",
        "baseUrl": ".",
        "paths": {"@/*": ["src/*"]},
        "strict": True,
        "noUnusedLocals": True,
        "noUnusedParameters": True,
        "noFallthroughCasesInSwitch": True,
    },
    "include": ["src", "vite.config.ts"],
}

_VITE_REACT_PACKAGE = {
    "name": "react-vite-ts",
    "private": True,
    "version": "0.0.0",
    "type": "module",
    "scripts": {
        "dev": "vite",
        "build": "tsc && vite build",
        "preview": "vite preview",
    },
    "dependencies": {
        "react": "19.2.4",
        "react-dom": "19.2.4",
    },
    "devDependencies": {
        "@types/react": "19.2.14",
        "@types/react-dom": "19.2.3",
        "@vitejs/plugin-react": "4.3.4",
        "typescript": "5.9.3",
        "vite": "4.2.0",
        "esbuild-wasm": "0.27.3",
    },
}

BUILTIN_TEMPLATES: dict[str, dict[str, Any]] = {
    "static": {
        "/index.html": {"code": _STATIC_INDEX},
        "/styles.css": {"code": "body {\n  font-family: sans-serif;\n}\n"},
        "/index.js": {"code": 'console.log("hello world");\n'},
        "/package.json": {
            "code": json.dumps({"name": "static", "version": "0.0.0", "private": True}, indent=2)
        },
    },
    "vanilla": {
        "/index.html": {"code": _VANILLA_INDEX},
        "/src/index.js": {"code": _VANILLA_MAIN},
        "/src/styles.css": {"code": "body {\n  font-family: sans-serif;\n}\n"},
        "/package.json": {
            "code": json.dumps(
                {
                    "name": "vanilla",
                    "version": "1.0.0",
                    "main": "index.html",
                    "scripts": {"start": "parcel index.html", "build": "parcel build index.html"},
                    "devDependencies": {"parcel": "^2.0.0"},
                },
                indent=2,
            )
        },
    },
    "vite-react-ts": {
        "/src/App.tsx": {"code": _VITE_REACT_APP},
        "/src/main.tsx": {"code": _VITE_REACT_MAIN},
        "/src/vite-env.d.ts": {"code": '/// <reference types="vite/client" />'},
        "/index.html": {"code": _VITE_REACT_INDEX},
        "/tsconfig.json": {"code": json.dumps(_VITE_REACT_TSCONFIG, indent=2)},
        "/package.json": {"code": json.dumps(_VITE_REACT_PACKAGE, indent=2)},
        "/vite.config.ts": {"code": _VITE_REACT_CONFIG},
    },
}
