"""Cross-check the code parser against luaparser on real-world shaped sources"""

import pytest

from lua_commenter.core.ast_nodes import FunctionDef
from lua_commenter.parser.code_parser import parse_code
from lua_commenter.tokenizer.code_tokenizer import tokenize

try:
    from luaparser import ast, astnodes
except ImportError:
    pytest.skip("luaparser not installed", allow_module_level=True)


SOURCES = {
    "module": """
local M = {}

-- Fetch a user
local function helper(a, b)
  return a
end

---@param id number
function M.get(id)
  if id == nil then
    return nil
  end
  return helper(id, 1)
end

function M:set(key, ...)
  self[key] = ...
end

function global_fn()
  for i = 1, 10 do
    print(i)
  end
end

return M
""",
    "nested": """
function outer(x)
  local function inner(y)
    return y
  end
  while x do
    x = inner(x)
  end
  return x
end

local function after() end
""",
}


def luaparser_functions(source):
    """Top-level (name, params) pairs as luaparser sees them"""
    result = []
    for stmt in ast.parse(source).body.body:
        if isinstance(stmt, astnodes.LocalFunction):
            name = stmt.name.id
        elif isinstance(stmt, astnodes.Function):
            if isinstance(stmt.name, astnodes.Index):
                name = f"{stmt.name.value.id}.{stmt.name.idx.id}"
            else:
                name = stmt.name.id
        elif isinstance(stmt, astnodes.Method):
            name = f"{stmt.source.id}:{stmt.name.id}"
        else:
            continue
        params = ["..." if isinstance(arg, astnodes.Varargs) else arg.id for arg in stmt.args]
        result.append((name, params))
    return result


def own_functions(source):
    return [
        (node.name, [param.name for param in node.params])
        for node in parse_code(tokenize(source))
        if isinstance(node, FunctionDef)
    ]


class TestLuaparserParity:
    """Test suite comparing top-level functions with luaparser"""

    @pytest.mark.parametrize("name", sorted(SOURCES))
    def test_top_level_functions_match(self, name):
        """Test names and parameter lists agree with luaparser"""
        source = SOURCES[name]
        assert own_functions(source) == luaparser_functions(source)

    def test_local_flag(self):
        """Test local functions are the ones luaparser calls LocalFunction"""
        source = SOURCES["module"]
        local_names = {
            stmt.name.id for stmt in ast.parse(source).body.body
            if isinstance(stmt, astnodes.LocalFunction)
        }
        own_local = {
            node.name for node in parse_code(tokenize(source))
            if isinstance(node, FunctionDef) and node.is_local
        }
        assert own_local == local_names
