"""xod/grammar.py – PEG grammar for a single xod statement.

The grammar covers one statement (or one block head) at a time.  The
statement splitter in ``xod.parser`` walks the input, matches one of
the two entry rules below at each position, and recurses into block
bodies itself:

    statement    assignment, list method, call, comparison or
                 bit expression
    block_head   ``for (...) {`` / ``while (...) {`` / ``if (...) {``

Ordered choice encodes the disambiguation rules:

* comparison operators are tried longest first (``==`` before ``=``,
  ``>=`` before ``>``), and a comparison is tried before a bit
  expression so ``<`` and ``<<`` never shadow each other;
* ``**`` is tried before ``*``;
* a range (``a..b``) is tried before any other assignment value.

Binary operators have no precedence: each side of a ``dual_expr`` is a
single operand, so ``a & b | c`` leaves ``| c`` unmatched and the
parser reports it.  The right operand is optional here; a missing one
is reported by the evaluator, which can suggest a complete expression.

``_`` is inline blank space.  ``ws`` may also span newlines and is used
only inside brackets, so a list or call can be continued on the next
line.
"""

from __future__ import annotations

from parsimonious.grammar import Grammar

XOD_GRAMMAR = Grammar(r'''
    # ─────────────────────────────────────────────────────────────
    # Entry points
    # ─────────────────────────────────────────────────────────────

    statement       = assignment / comparison / bit_expr / method_call / func_call

    block_head      = for_head / while_head / if_head
    for_head        = "for" _ "(" ws name _ in_kw _ iterable ws ")" ws "{"
    while_head      = "while" _ "(" ws comparison ws ")" ws "{"
    if_head         = "if" _ "(" ws comparison ws ")" ws "{"
    iterable        = list / range / name

    # ─────────────────────────────────────────────────────────────
    # Assignment
    # ─────────────────────────────────────────────────────────────

    assignment      = name _ assign_op _ value
    value           = range / list / bit_expr / func_call / method_call
                    / sep_expr / number / name

    # ─────────────────────────────────────────────────────────────
    # Expressions
    # ─────────────────────────────────────────────────────────────

    operand         = number / sep_expr / func_call / method_call / name

    bit_expr        = dual_expr / single_expr
    dual_expr       = operand _ dual_op right_operand?
    right_operand   = _ operand
    single_expr     = not_op _ operand
    sep_expr        = "(" ws bit_expr ws ")"

    comparison      = operand _ compare_op _ operand

    # ─────────────────────────────────────────────────────────────
    # Lists and ranges
    # ─────────────────────────────────────────────────────────────

    list            = "[" ws list_items? ws "]"
    list_items      = operand list_tail*
    list_tail       = ws "," ws operand

    range           = range_call / paren_range / range_dots
    range_call      = "range" _ "(" ws operand ws "," ws operand ws ")"
    paren_range     = "(" ws range_dots ws ")"
    range_dots      = operand _ ".." _ operand

    # ─────────────────────────────────────────────────────────────
    # Built-in functions
    # ─────────────────────────────────────────────────────────────

    func_call       = bool_call / format_call / log_call / control_call

    bool_call       = "bool" _ "(" ws bool_arg ws ")"
    bool_arg        = comparison / operand

    format_call     = format_name _ "(" ws format_arg ws ")"
    format_name     = "hex" / "bin" / "oct" / "dec"
    format_arg      = range / list / bit_expr / operand

    log_call        = "log" _ "(" ws operand ws "," ws operand ws ")"

    control_call    = control_name _ "(" ws ")"
    control_name    = "quit" / "exit" / "help" / "history" / "clear"

    # ─────────────────────────────────────────────────────────────
    # List methods
    # ─────────────────────────────────────────────────────────────

    method_call     = name "." method
    method          = arg_method / bare_method
    arg_method      = arg_method_name _ "(" ws method_arg ws ")"
    arg_method_name = "append" / "prepend" / "index" / "get"
    bare_method     = bare_method_name _ "(" ws ")"
    bare_method_name = "pop_back" / "back" / "front" / "pop"
    method_arg      = bit_expr / operand

    # ─────────────────────────────────────────────────────────────
    # Tokens
    # ─────────────────────────────────────────────────────────────

    dual_op         = "<<" / ">>" / "**" / "&" / "|" / "^" / "+" / "-" / "*" / "/" / "%"
    not_op          = "!" / "~"
    compare_op      = "==" / "!=" / ">=" / "<=" / ">" / "<"
    assign_op       = ~r"=(?!=)"
    in_kw           = ~r"in(?![A-Za-z0-9_])"

    number          = ~r"[0-9][0-9A-Za-z_]*"
    name            = ~r"[A-Za-z_][A-Za-z0-9_]*"

    _               = ~r"[ \t]*"
    ws              = ~r"\s*"
''')

# Operator tokens that may legally follow a complete expression when the
# user tries to chain a second binary operator without parentheses.
DUAL_OPERATORS = ("<<", ">>", "**", "&", "|", "^", "+", "-", "*", "/", "%")

BLOCK_KEYWORDS = ("for", "while", "if")
