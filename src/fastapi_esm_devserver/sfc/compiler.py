"""Template compiler — turns a component template into a render function module.

The output is an ES module importing the runtime helpers from ``vue`` and
exporting ``render(_ctx, _cache)``. Only the directive subset listed in
``compile_template`` is understood. Expressions are rewritten with a token
scanner, not a JavaScript parser, so identifiers inside template literal
placeholders and destructured parameters are prefixed like any other free
identifier.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field

from fastapi_esm_devserver.exceptions import TemplateCompileError

_TAG = re.compile(
    r"""<!--.*?-->"""
    r"""|</(?P<close>[A-Za-z][\w:.-]*)\s*>"""
    r"""|<(?P<open>[A-Za-z][\w:.-]*)"""
    r"""(?P<attrs>(?:\s+[^\s"'>/=]+(?:\s*=\s*(?:"[^"]*"|'[^']*'|[^\s"'=<>`]+))?)*)"""
    r"""\s*(?P<selfclose>/?)>""",
    re.S,
)
_ATTR = re.compile(
    r"""([^\s"'>/=]+)(?:\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s"'=<>`]+)))?"""
)
_INTERPOLATION = re.compile(r"\{\{(.*?)\}\}", re.S)
_EXPR_TOKEN = re.compile(
    r"""(?P<str>'(?:\\.|[^'\\])*'|"(?:\\.|[^"\\])*"|`(?:\\.|[^`\\])*`)"""
    r"""|(?P<num>\d[\w.]*)"""
    r"""|(?P<id>[A-Za-z_$][\w$]*)"""
    r"""|(?P<other>\s+|.)""",
    re.S,
)
_MEMBER_PATH = re.compile(r"^[A-Za-z_$][\w$]*(?:\.[A-Za-z_$][\w$]*)*$")
_FUNCTION_EXPR = re.compile(
    r"^(?:async\s+)?(?:function\b|\([^()]*\)\s*=>|[A-Za-z_$][\w$]*\s*=>)"
)
_PARAM_LIST = re.compile(r"\bfunction\b[^(]*\(([^()]*)\)|\(([^()]*)\)\s*=>")
_FOR_ALIAS = re.compile(r"^\s*(?:\(([^)]*)\)|([A-Za-z_$][\w$]*))\s+(?:in|of)\s+(.+)$", re.S)

VOID_ELEMENTS = frozenset(
    "area base br col embed hr img input link meta param source track wbr".split()
)
_GLOBALS = frozenset(
    """true false null undefined this typeof instanceof in of new void delete
    NaN Infinity Math Date JSON Number String Boolean Array Object RegExp
    parseInt parseFloat isNaN isFinite encodeURIComponent decodeURIComponent
    console window document Intl BigInt Map Set
    function async await return let const var if else""".split()
)


@dataclass
class _Text:
    content: str


@dataclass
class _Element:
    tag: str
    attrs: list[tuple[str, str | None]] = field(default_factory=list)
    children: list[_Element | _Text] = field(default_factory=list)

    def directive(self, name: str) -> str | None:
        for attr, value in self.attrs:
            if attr == name:
                return value if value is not None else ""
        return None

    def has(self, name: str) -> bool:
        return any(attr == name for attr, _ in self.attrs)


def _parse(source: str, id: str) -> list[_Element | _Text]:
    root = _Element("#root")
    stack = [root]
    pos = 0
    for match in _TAG.finditer(source):
        if match.start() > pos:
            stack[-1].children.append(_Text(source[pos : match.start()]))
        pos = match.end()

        if match.group("close"):
            tag = match.group("close")
            if tag.lower() in VOID_ELEMENTS:
                continue
            if len(stack) == 1 or stack[-1].tag != tag:
                raise TemplateCompileError(id, f"unexpected closing tag </{tag}>")
            stack.pop()
        elif match.group("open"):
            tag = match.group("open")
            attrs = []
            for attr in _ATTR.finditer(match.group("attrs") or ""):
                name, dq, sq, bare = attr.groups()
                attrs.append((name, next((v for v in (dq, sq, bare) if v is not None), None)))
            element = _Element(tag, attrs)
            stack[-1].children.append(element)
            if not match.group("selfclose") and tag.lower() not in VOID_ELEMENTS:
                stack.append(element)

    if pos < len(source):
        stack[-1].children.append(_Text(source[pos:]))
    if len(stack) > 1:
        raise TemplateCompileError(id, f"unclosed tag <{stack[-1].tag}>")
    return root.children


def _param_names(params: str) -> set[str]:
    names: set[str] = set()
    for param in params.split(","):
        name = param.split("=", 1)[0].strip().lstrip(".")
        if re.fullmatch(r"[A-Za-z_$][\w$]*", name):
            names.add(name)
    return names


def prefix_identifiers(expression: str, scope: frozenset[str] = frozenset()) -> str:
    """Prefix free identifiers of ``expression`` with ``_ctx.``."""
    tokens = [(m.lastgroup, m.group(0)) for m in _EXPR_TOKEN.finditer(expression)]
    local = set(scope)
    for match in _PARAM_LIST.finditer(expression):
        local.update(_param_names(match.group(1) or match.group(2) or ""))
    out: list[str] = []

    def significant(index: int, step: int) -> int:
        index += step
        while 0 <= index < len(tokens) and tokens[index][1].isspace():
            index += step
        return index

    def text_at(index: int) -> str:
        return tokens[index][1] if 0 <= index < len(tokens) else ""

    for i, (kind, text) in enumerate(tokens):
        if kind != "id":
            out.append(text)
            continue
        before = text_at(significant(i, -1))
        after_index = significant(i, 1)
        after = text_at(after_index)
        spread = "".join(out).rstrip().endswith("...")
        if (before == "." and not spread) or before == "function":
            out.append(text)
        elif after == ":" and before in ("{", ","):
            out.append(text)
        elif after == "=" and text_at(after_index + 1) == ">":
            local.add(text)
            out.append(text)
        elif text in _GLOBALS or text in local:
            out.append(text)
        else:
            out.append(f"_ctx.{text}")
    return "".join(out)


class _Codegen:
    def __init__(self, id: str) -> None:
        self.id = id
        self.helpers: set[str] = set()

    def helper(self, name: str) -> str:
        self.helpers.add(name)
        return f"_{name}"

    def children(self, nodes: list[_Element | _Text], scope: frozenset[str]) -> list[str]:
        out: list[str] = []
        nodes = self._condense(nodes)
        i = 0
        while i < len(nodes):
            node = nodes[i]
            if isinstance(node, _Text):
                out.append(self.text(node.content, scope))
                i += 1
                continue
            if node.has("v-else") or node.has("v-else-if"):
                raise TemplateCompileError(self.id, f"v-else on <{node.tag}> without v-if")
            if node.has("v-if"):
                branches = [node]
                i += 1
                while i < len(nodes):
                    sibling = nodes[i]
                    if isinstance(sibling, _Text) and not sibling.content.strip():
                        i += 1
                        continue
                    if isinstance(sibling, _Element) and (
                        sibling.has("v-else-if") or sibling.has("v-else")
                    ):
                        branches.append(sibling)
                        i += 1
                        if sibling.has("v-else"):
                            break
                        continue
                    break
                out.append(self.conditional(branches, scope))
                continue
            out.append(self.element(node, scope))
            i += 1
        return out

    def _condense(self, nodes: list[_Element | _Text]) -> list[_Element | _Text]:
        result: list[_Element | _Text] = []
        for index, node in enumerate(nodes):
            if isinstance(node, _Element):
                result.append(node)
                continue
            if node.content.strip():
                result.append(_Text(re.sub(r"\s+", " ", node.content)))
            elif "\n" not in node.content and 0 < index < len(nodes) - 1:
                result.append(_Text(" "))
        return result

    def text(self, content: str, scope: frozenset[str]) -> str:
        parts: list[str] = []
        pos = 0
        for match in _INTERPOLATION.finditer(content):
            if match.start() > pos:
                parts.append(json.dumps(content[pos : match.start()]))
            expr = prefix_identifiers(match.group(1).strip(), scope)
            parts.append(f"{self.helper('toDisplayString')}({expr})")
            pos = match.end()
        if pos < len(content):
            parts.append(json.dumps(content[pos:]))
        return " + ".join(parts) or '""'

    def conditional(self, branches: list[_Element], scope: frozenset[str]) -> str:
        code = "null"
        for branch in reversed(branches):
            if branch.has("v-else"):
                code = self.element(branch, scope)
                continue
            condition = branch.directive("v-if")
            if condition is None:
                condition = branch.directive("v-else-if")
            if not condition:
                raise TemplateCompileError(self.id, f"empty condition on <{branch.tag}>")
            test = prefix_identifiers(condition, scope)
            code = f"({test}) ? {self.element(branch, scope)} : {code}"
        return f"({code})"

    def element(self, el: _Element, scope: frozenset[str]) -> str:
        source = el.directive("v-for")
        if source is not None:
            match = _FOR_ALIAS.match(source)
            if match is None:
                raise TemplateCompileError(self.id, f'malformed v-for="{source}"')
            names = match.group(1) if match.group(1) is not None else match.group(2)
            aliases = [name.strip() for name in names.split(",") if name.strip()]
            inner_scope = scope | frozenset(aliases)
            iterable = prefix_identifiers(match.group(3).strip(), scope)
            body = self._vnode(el, inner_scope)
            params = ", ".join(aliases)
            return f"{self.helper('renderList')}({iterable}, ({params}) => {body})"
        return self._vnode(el, scope)

    def _vnode(self, el: _Element, scope: frozenset[str]) -> str:
        children = self.children(el.children, scope)
        if el.tag == "template":
            return f"_h({self.helper('Fragment')}, null, [{', '.join(children)}])"
        if el.tag == "slot":
            name = el.directive("name") or "default"
            fallback = f"() => [{', '.join(children)}]" if children else "undefined"
            return (
                f"{self.helper('renderSlot')}(_ctx.$slots, {json.dumps(name)}, {{}}, "
                f"{fallback})"
            )

        props, show = self.props(el, scope)
        if self._is_component(el.tag):
            tag = f"{self.helper('resolveComponent')}({json.dumps(el.tag)})"
            slots = f"{{ default: () => [{', '.join(children)}] }}" if children else "null"
            vnode = f"_h({tag}, {props}, {slots})"
        else:
            vnode = f"_h({json.dumps(el.tag)}, {props}, [{', '.join(children)}])"

        if show is not None:
            directive = self.helper("vShow")
            vnode = f"{self.helper('withDirectives')}({vnode}, [[{directive}, {show}]])"
        return vnode

    def props(self, el: _Element, scope: frozenset[str]) -> tuple[str, str | None]:
        entries: list[str] = []
        show: str | None = None
        component = self._is_component(el.tag)
        for name, value in el.attrs:
            if name in ("v-if", "v-else-if", "v-else", "v-for"):
                continue
            if name.startswith(":") or name.startswith("v-bind:"):
                key = name.split(":", 1)[1]
                entries.append(f"{json.dumps(key)}: {self._expr(name, value, scope)}")
            elif name.startswith("@") or name.startswith("v-on:"):
                event = name[1:] if name.startswith("@") else name[5:]
                key = "on" + event[:1].upper() + event[1:]
                entries.append(f"{json.dumps(key)}: {self._handler(name, value, scope)}")
            elif name == "v-model":
                target = self._expr(name, value, scope)
                if component:
                    entries.append(f'"modelValue": {target}')
                    entries.append(f'"onUpdate:modelValue": ($event) => ({target} = $event)')
                else:
                    entries.append(f'"value": {target}')
                    entries.append(f'"onInput": ($event) => ({target} = $event.target.value)')
            elif name == "v-html":
                entries.append(f'"innerHTML": {self._expr(name, value, scope)}')
            elif name == "v-text":
                entries.append(f'"textContent": {self._expr(name, value, scope)}')
            elif name == "v-show":
                show = self._expr(name, value, scope)
            elif name.startswith("v-"):
                raise TemplateCompileError(self.id, f"unsupported directive {name}")
            else:
                entries.append(f"{json.dumps(name)}: {json.dumps(value or '')}")
        props = f"{{ {', '.join(entries)} }}" if entries else "null"
        return props, show

    def _expr(self, name: str, value: str | None, scope: frozenset[str]) -> str:
        if not value or not value.strip():
            raise TemplateCompileError(self.id, f"{name} requires an expression")
        return prefix_identifiers(value.strip(), scope)

    def _handler(self, name: str, value: str | None, scope: frozenset[str]) -> str:
        if not value or not value.strip():
            raise TemplateCompileError(self.id, f"{name} requires a handler")
        value = value.strip()
        if _MEMBER_PATH.match(value) or _FUNCTION_EXPR.match(value):
            return prefix_identifiers(value, scope)
        statement = prefix_identifiers(value, scope | {"$event"})
        return f"($event) => ({statement})"

    @staticmethod
    def _is_component(tag: str) -> bool:
        return "-" in tag or tag != tag.lower()


def compile_template(source: str, id: str) -> str:
    """Compile template ``source`` into an ES module exporting ``render``.

    ``id`` identifies the owning component (its logical path) and is used in
    error messages and the generated header. Supported: interpolation,
    static attributes, ``:prop``/``v-bind``, ``@event``/``v-on``,
    ``v-if``/``v-else-if``/``v-else``, ``v-for``, ``v-model``, ``v-show``,
    ``v-html``, ``v-text``, ``<template>`` fragments, ``<slot>`` and
    components resolved by name.
    """
    codegen = _Codegen(id)
    roots = codegen.children(_parse(source, id), frozenset())
    if not roots:
        returned = "null"
    elif len(roots) == 1:
        returned = roots[0]
    else:
        returned = f"[{', '.join(roots)}]"

    imports = ["h as _h"] + [f"{name} as _{name}" for name in sorted(codegen.helpers)]
    return (
        f"/* {id} */\n"
        f"import {{ {', '.join(imports)} }} from \"vue\"\n"
        f"\n"
        f"export function render(_ctx, _cache) {{\n"
        f"  return {returned}\n"
        f"}}\n"
    )
