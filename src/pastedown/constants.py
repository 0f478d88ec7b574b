#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Constants and default values for the pastedown library.

This module centralizes the hardcoded values used across the paste
pipeline: sanitizer allow-lists, marker attributes shared between passes,
language alias tables and network limits.

Constants are organized by category:
1. Type Definitions
2. Pipeline Markers
3. Sanitizer Allow-lists
4. Code Block Vocabulary
5. Image and Network Limits
"""

from __future__ import annotations

import re
from typing import Literal

# =============================================================================
# Type Definitions
# =============================================================================

ProcessingErrorKind = Literal["dom-unavailable", "sanitize-failed"]
DEFAULT_PARSER = "html.parser"

# =============================================================================
# Pipeline Markers
# =============================================================================

# Opaque resource references look like ":/<32 hex chars>"
RESOURCE_URL_PREFIX = ":/"

# Set on <pre> by the wrapper collapse step, consumed by language inference
WRAPPER_CLASSES_ATTR = "data-pam-wrapper-classes"

# Set on <img> after resource conversion, consumed by the link unwrap pass
CONVERTED_IMAGE_ATTR = "data-pam-converted"

# Placeholder for inline code that only holds non-breaking spaces
NBSP_SENTINEL = "__PAM_NBSP__"

NBSP = "\u00a0"

# =============================================================================
# Sanitizer Allow-lists
# =============================================================================

BASE_ALLOWED_TAGS: tuple[str, ...] = (
    "a",
    "p",
    "div",
    "span",
    "strong",
    "em",
    "b",
    "i",
    "u",
    "s",
    "sup",
    "sub",
    "del",
    "mark",
    "ins",
    "input",
    "code",
    "pre",
    "ul",
    "ol",
    "li",
    "blockquote",
    "hr",
    "br",
    "h1",
    "h2",
    "h3",
    "h4",
    "h5",
    "h6",
    "table",
    "thead",
    "tbody",
    "tr",
    "th",
    "td",
)

IMAGE_TAGS: tuple[str, ...] = ("img", "picture", "source")

BASE_ALLOWED_ATTRS: tuple[str, ...] = (
    "href",
    "name",
    "id",
    "title",
    "aria-label",
    "aria-labelledby",
    "colspan",
    "rowspan",
    "align",
    "class",
    "type",
    "checked",
    "disabled",
)

IMAGE_ATTRS: tuple[str, ...] = ("src", "alt", "width", "height", "title")

# Attributes that never survive the boundary, whatever the allow-list says
FORBIDDEN_ATTRS: tuple[str, ...] = ("style",)

# Elements dropped together with their content before sanitizing
FORBIDDEN_CONTENT_TAGS: tuple[str, ...] = (
    "script",
    "style",
    "iframe",
    "frame",
    "frameset",
    "noframes",
    "object",
    "embed",
    "applet",
    "base",
    "meta",
    "link",
    "template",
    "noscript",
)

ALLOWED_PROTOCOLS: tuple[str, ...] = (
    "http",
    "https",
    "ftp",
    "ftps",
    "mailto",
    "tel",
    "callto",
    "sms",
    "cid",
    "xmpp",
    "data",
)

# =============================================================================
# Structure Vocabulary
# =============================================================================

HEADING_TAGS: tuple[str, ...] = ("h1", "h2", "h3", "h4", "h5", "h6")

LIST_TAGS: tuple[str, ...] = ("ul", "ol")

BLOCK_TAGS: frozenset[str] = frozenset(
    {
        "address",
        "article",
        "aside",
        "blockquote",
        "dd",
        "details",
        "div",
        "dl",
        "dt",
        "fieldset",
        "figcaption",
        "figure",
        "footer",
        "form",
        "h1",
        "h2",
        "h3",
        "h4",
        "h5",
        "h6",
        "header",
        "hr",
        "li",
        "main",
        "nav",
        "ol",
        "p",
        "pre",
        "section",
        "table",
        "ul",
    }
)

IMAGE_FAMILY_TAGS: frozenset[str] = frozenset({"img", "picture", "source"})

# SVG children that carry no accessible meaning on their own
DECORATIVE_SVG_TAGS: frozenset[str] = frozenset(
    {"path", "g", "defs", "use", "symbol", "clippath", "mask", "pattern"}
)

UI_ROLES: frozenset[str] = frozenset(
    {"button", "toolbar", "tablist", "tab", "menu", "menubar", "combobox", "switch"}
)

PERMALINK_CLASSES: frozenset[str] = frozenset({"anchor", "headerlink", "header-anchor", "anchorjs-link"})
PERMALINK_GLYPHS: frozenset[str] = frozenset({"¶", "#", "🔗", "§"})

# =============================================================================
# Code Block Vocabulary
# =============================================================================

# Priority-ordered selectors for syntax highlighter wrappers, bare <pre> last
CODE_WRAPPER_SELECTORS: tuple[str, ...] = (
    "div.highlight",
    'div[class^="highlight-"]',
    'div[class*=" highlight-"]',
    "div.snippet-clipboard-content",
    "div.sourceCode",
    "figure.highlight",
    'figure[class^="highlight-"]',
    'figure[class*=" highlight-"]',
    "pre",
)

CODE_UI_CLASS_PATTERN = re.compile(r"codeblock-button-wrapper|copy|fullscreen|toolbar", re.IGNORECASE)
TOOLBAR_CLASS_PATTERN = re.compile(
    r"\b(copy|clipboard|code[-_]?header|code[-_]?toolbar|snippet-controls|code-actions|toolbar)\b",
    re.IGNORECASE,
)
COPY_CLASS_PATTERN = re.compile(r"\b(copy|clipboard)\b", re.IGNORECASE)

LANGUAGE_CLASS_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\blanguage-(c\+\+)(?![A-Za-z0-9+#_.-])"),
    re.compile(r"\blanguage-([A-Za-z0-9+#_.-]+)"),
    re.compile(r"\blang-([A-Za-z0-9+#_.-]+)"),
    re.compile(r"\bhighlight-source-([a-z0-9]+)\b", re.IGNORECASE),
    re.compile(r"\bhighlight-(?:text-)?([a-z0-9]+)(?:-basic)?\b", re.IGNORECASE),
    re.compile(r"\bbrush:\s*([a-z0-9]+)\b", re.IGNORECASE),
    re.compile(r"\bprettyprint\s+lang-([a-z0-9]+)\b", re.IGNORECASE),
    re.compile(r"\bhljs-([a-z0-9]+)\b", re.IGNORECASE),
    re.compile(r"\bcode-([a-z0-9]+)\b", re.IGNORECASE),
)

LANGUAGE_CLASS_PREFIXES: tuple[str, ...] = ("language-", "lang-", "highlight-source-")

# Rendered as a fence with an explicit "no highlighting" tag
PLAIN_TEXT_LANGUAGE = "txt"

# Languages and aliases bundled with the highlight.js core distribution.
# Labels and classes naming anything else (captions such as "Output") are
# not languages.
HIGHLIGHT_JS_LANGUAGES: frozenset[str] = frozenset(
    """
    1c abnf accesslog actionscript as ada angelscript asc apache apacheconf applescript osascript
    arcade arduino ino armasm arm asciidoc adoc aspectj autohotkey ahk autoit avrasm awk axapta
    bash sh zsh basic bnf brainfuck bf c h cal capnproto capnp ceylon clean icl dcl clojure clj edn
    clojure-repl cmake coffeescript coffee cson iced coq cos cls cpp cc c++ h++ hpp hh hxx cxx
    crmsh crm pcmk crystal cr csharp cs c# csp css d dart delphi dpr dfm pas pascal diff patch
    django jinja dns bind zone dockerfile docker dos bat cmd dsconfig dts dust dst ebnf elixir ex
    exs elm erb erlang erl erlang-repl excel xlsx xls fix flix fortran f90 f95 fsharp fs f# gams
    gms gauss gss gcode nc gherkin feature glsl gml go golang golo gradle graphql gql groovy haml
    handlebars hbs htmlbars haskell hs haxe hx hsp http https hy hylang inform7 i7 ini toml irpf90
    isbl java jsp javascript js jsx mjs cjs jboss-cli wildfly-cli json jsonc json5 julia julia-repl
    jldoctest kotlin kt kts lasso ls lassoscript latex tex ldif leaf less lisp livecodeserver
    livescript llvm lsl lua makefile mk mak make markdown md mkdown mkd mathematica mma wl matlab
    maxima mel mercury moo mipsasm mips mizar mojolicious monkey moonscript moon n1ql nestedtext
    nginx nginxconf nim nix nixos node-repl nsis objectivec mm objc obj-c ocaml ml openscad scad
    oxygene parser3 perl pl pm pf pgsql postgres postgresql php php-template plaintext text txt
    pony powershell pwsh ps ps1 processing pde profile prolog properties protobuf proto puppet pp
    purebasic pb pbi python py gyp ipython python-repl pycon q k kdb qml qt r reasonml re rib
    roboconf routeros mikrotik rsl ruby rb gemspec podspec thor irb ruleslanguage rust rs sas
    scala scheme scm scilab sci scss shell console shellsession smali smalltalk st sml sqf sql
    stan stanfuncs stata ado step21 p21 step stp stylus styl subunit swift taggerscript tap tcl
    tk thrift tp twig craftcms typescript ts tsx mts cts vala vbnet vb vbscript vbs vbscript-html
    verilog v sv svh vhdl vim wasm wren x86asm xl tao xml html xhtml rss atom xjb xsd xsl plist
    wsf svg xquery xpath xq xqm yaml yml zephir zep
    """.split()
)

LANGUAGE_ALIASES: dict[str, str | None] = {
    "js": "javascript",
    "mjs": "javascript",
    "cjs": "javascript",
    "ts": "typescript",
    "py": "python",
    "py3": "python",
    "rb": "ruby",
    "cxx": "cpp",
    "c++": "cpp",
    "c#": "csharp",
    "cs": "csharp",
    "sh": "bash",
    "shell": "bash",
    "zsh": "bash",
    "console": "bash",
    "htm": "html",
    "md": "markdown",
    "yml": "yaml",
    "tml": "toml",
    "rs": "rust",
    "golang": "go",
    "kt": "kotlin",
    "docker": "dockerfile",
    "plain": PLAIN_TEXT_LANGUAGE,
    "plain_text": PLAIN_TEXT_LANGUAGE,
    "plaintext": PLAIN_TEXT_LANGUAGE,
    "text": PLAIN_TEXT_LANGUAGE,
    "default": None,
    "none": None,
    "auto": None,
    "container": None,
    "code": None,
    "source": None,
    "sourcecode": None,
}

LANGUAGE_TOKEN_PATTERN = re.compile(r"^[a-z0-9+#_.-]{1,40}$")

# =============================================================================
# Image and Network Limits
# =============================================================================

MAX_IMAGE_BYTES = 10 * 1024 * 1024  # 10MB per image
DEFAULT_FETCH_TIMEOUT = 15.0
DEFAULT_FETCH_ATTEMPTS = 3
DEFAULT_BACKOFF_BASE = 0.5
# Retried in addition to every 5xx status
RETRYABLE_STATUS_CODES: frozenset[int] = frozenset({408, 429})
DEFAULT_USER_AGENT = "pastedown-fetcher/1.0"
NETWORK_DISABLE_ENV = "PASTEDOWN_DISABLE_NETWORK"
USER_AGENT_ENV = "PASTEDOWN_USER_AGENT"

MAX_ALT_TEXT_LENGTH = 120
DEFAULT_IMAGE_ALT = "image"
PASTED_FILENAME_STEM = "pasted"

IMAGE_MIME_EXTENSIONS: dict[str, str] = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/gif": "gif",
    "image/webp": "webp",
    "image/svg+xml": "svg",
    "image/bmp": "bmp",
    "image/x-icon": "ico",
    "image/vnd.microsoft.icon": "ico",
}

# Ordered whitelist for standardized <img> elements
IMAGE_ATTRIBUTE_ORDER: tuple[str, ...] = ("src", "alt", "title", "width", "height")
