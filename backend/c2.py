#!/usr/bin/env python3
"""
c2.py
Single-file compiler for a tiny C subset (lexer → precedence-climbing parser
→ AST → x86-64 assembly, AT&T syntax).

Accepted programs are a single `int name() { ... }` function with int
locals, arithmetic / relational / logical expressions, assignment and
`return`. The output is meant to be fed to `gcc file.s -o file`.
"""

import io
import logging
import re
import sys
from collections import namedtuple

log = logging.getLogger(__name__)

WORD_SIZE = 8
INT64_MAX = 2 ** 63 - 1

# =====================================================
# ERRORS
# =====================================================
class CodegenError(Exception):
    """Fatal semantic error; code generation stops immediately."""

    def __init__(self, msg, lineno=None):
        super().__init__(msg)
        self.msg = msg
        self.lineno = lineno

def format_error(phase, msg, lineno=None, severity="error"):
    if lineno is not None:
        return f"{phase} {severity} (line {lineno}): {msg}"
    return f"{phase} {severity}: {msg}"

# =====================================================
# LEXER
# =====================================================
Token = namedtuple('Token', ['type', 'value', 'lineno'])

class Lexer:
    KEYWORDS = {'int': 'INT', 'return': 'RETURN'}
    # two-character operators must stay ahead of their one-character prefixes
    token_specification = [
        ("COMMENT",            r'//[^\n]*'),
        ("INT_LITERAL",        r'[0-9]+'),
        ("IDENT",              r'[A-Za-z_][A-Za-z0-9_]*'),
        ("EQ",                 r'=='),
        ("NOT_EQ",             r'!='),
        ("LT_EQ",              r'<='),
        ("GT_EQ",              r'>='),
        ("AND",                r'&&'),
        ("OR",                 r'\|\|'),
        ("ASSIGN",             r'='),
        ("LOGICAL_NEGATION",   r'!'),
        ("LT",                 r'<'),
        ("GT",                 r'>'),
        ("PLUS",               r'\+'),
        ("MINUS",              r'-'),
        ("ASTERISK",           r'\*'),
        ("SLASH",              r'/'),
        ("BITWISE_COMPLEMENT", r'~'),
        ("SEMICOLON",          r';'),
        ("LPAREN",             r'\('),
        ("RPAREN",             r'\)'),
        ("LBRACE",             r'\{'),
        ("RBRACE",             r'\}'),
        ("SKIP",               r'[ \t\r\f\v]+'),
        ("NEWLINE",            r'\n'),
        ("ILLEGAL",            r'.'),
    ]
    tok_regex = '|'.join(f'(?P<{n}>{p})' for n, p in token_specification)
    master_re = re.compile(tok_regex)

    def __init__(self, code):
        self.code = code
        self.lineno = 1
        self._scanner = self._scan()

    def _scan(self):
        for mo in self.master_re.finditer(self.code):
            kind = mo.lastgroup
            val = mo.group()
            if kind == "NEWLINE":
                self.lineno += 1
            elif kind == "SKIP" or kind == "COMMENT":
                continue
            elif kind == "IDENT":
                yield Token(self.KEYWORDS.get(val, 'IDENT'), val, self.lineno)
            else:
                yield Token(kind, val, self.lineno)

    def next_token(self):
        """Return the next token; EOF is repeated once the input runs out."""
        tok = next(self._scanner, None)
        if tok is None:
            return Token('EOF', '', self.lineno)
        return tok

def tokenize(code):
    lexer = Lexer(code)
    toks = []
    tok = lexer.next_token()
    while tok.type != 'EOF':
        toks.append(tok)
        tok = lexer.next_token()
    return toks

# =====================================================
# AST NODES
# =====================================================
class Node:
    lineno = None

    def __str__(self):
        return render(self)

class Program(Node):
    def __init__(self, function):
        self.function = function

class Function(Node):
    def __init__(self, name, statements=None, lineno=None):
        self.name = name
        self.statements = statements if statements is not None else []
        self.lineno = lineno

class Return(Node):
    def __init__(self, expr, lineno=None):
        self.expr = expr
        self.lineno = lineno

class VarDecl(Node):
    def __init__(self, name, init_expr=None, lineno=None):
        self.name = name
        self.init_expr = init_expr  # None means no initializer
        self.lineno = lineno

class ExprStatement(Node):
    def __init__(self, expr, lineno=None):
        self.expr = expr
        self.lineno = lineno

class IntLiteral(Node):
    def __init__(self, value, lineno=None):
        self.value = value  # decimal text, emitted verbatim
        self.lineno = lineno

class Variable(Node):
    def __init__(self, name, lineno=None):
        self.name = name
        self.lineno = lineno

class UnaryOp(Node):
    def __init__(self, op, operand, lineno=None):
        self.op = op
        self.operand = operand
        self.lineno = lineno

class BinaryOp(Node):
    def __init__(self, op, left, right, lineno=None):
        self.op = op
        self.left = left
        self.right = right
        self.lineno = lineno

def render(node):
    """Render a node back to source text, fully parenthesising expressions."""
    if node is None:
        return ''
    if isinstance(node, Program):
        return render(node.function)
    if isinstance(node, Function):
        body = ''.join(' ' + render(s) for s in node.statements)
        return f"int {node.name}() {{{body} }}"
    if isinstance(node, Return):
        return f"return {render(node.expr)};"
    if isinstance(node, VarDecl):
        if node.init_expr is None:
            return f"int {node.name};"
        return f"int {node.name} = {render(node.init_expr)};"
    if isinstance(node, ExprStatement):
        return f"{render(node.expr)};"
    if isinstance(node, IntLiteral):
        return node.value
    if isinstance(node, Variable):
        return node.name
    if isinstance(node, UnaryOp):
        return f"({node.op}{render(node.operand)})"
    if isinstance(node, BinaryOp):
        return f"({render(node.left)} {node.op} {render(node.right)})"
    raise TypeError(f"cannot render {type(node).__name__}")

# =====================================================
# PARSER (precedence climbing, one-token lookahead)
# =====================================================
LOWEST, ASSIGN, LOGICAL_OR, LOGICAL_AND, EQUALS, LESSGREATER, SUM, PRODUCT, PREFIX = range(1, 10)

PRECEDENCES = {
    'ASSIGN':   ASSIGN,
    'OR':       LOGICAL_OR,
    'AND':      LOGICAL_AND,
    'EQ':       EQUALS,
    'NOT_EQ':   EQUALS,
    'LT':       LESSGREATER,
    'GT':       LESSGREATER,
    'LT_EQ':    LESSGREATER,
    'GT_EQ':    LESSGREATER,
    'PLUS':     SUM,
    'MINUS':    SUM,
    'ASTERISK': PRODUCT,
    'SLASH':    PRODUCT,
}

RIGHT_ASSOCIATIVE = {'ASSIGN'}

class Parser:
    """
    Pulls tokens from a Lexer and builds the AST.

    Syntax errors are collected in `errors` instead of being raised; callers
    must check it before trusting the returned tree. Every parse_* method
    starts with `cur_token` on the first token of its construct and leaves
    it on the construct's last token.
    """

    def __init__(self, lexer):
        self.lexer = lexer
        self.errors = []
        self.cur_token = None
        self.peek_token = None

        self.prefix_parse_fns = {
            'INT_LITERAL':        self.parse_int_literal,
            'IDENT':              self.parse_variable,
            'LPAREN':             self.parse_grouped_expression,
            'MINUS':              self.parse_unary,
            'BITWISE_COMPLEMENT': self.parse_unary,
            'LOGICAL_NEGATION':   self.parse_unary,
        }
        self.infix_parse_fns = {ttype: self.parse_binary for ttype in PRECEDENCES}

        self.next_token()
        self.next_token()

    # ---- token helpers ----
    def next_token(self):
        self.cur_token = self.peek_token
        self.peek_token = self.lexer.next_token()

    def cur_token_is(self, ttype):
        return self.cur_token.type == ttype

    def peek_token_is(self, ttype):
        return self.peek_token.type == ttype

    def expect_peek(self, ttype):
        if self.peek_token_is(ttype):
            self.next_token()
            return True
        self.peek_error(ttype)
        return False

    def peek_precedence(self):
        return PRECEDENCES.get(self.peek_token.type, LOWEST)

    def cur_precedence(self):
        return PRECEDENCES.get(self.cur_token.type, LOWEST)

    # ---- diagnostics ----
    def error(self, msg, lineno=None):
        self.errors.append(format_error("Syntax", msg, lineno))

    def peek_error(self, ttype):
        self.error(f"expected next token to be {ttype}, got {self.peek_token.type} instead",
                   self.peek_token.lineno)

    def no_prefix_parse_fn_error(self, tok):
        if tok.type == 'ILLEGAL':
            self.error(f"illegal character {tok.value!r}", tok.lineno)
        else:
            self.error(f"no prefix parse function for {tok.type} found", tok.lineno)

    # ---- program structure ----
    def parse_program(self):
        program = Program(self.parse_function())
        if program.function is not None and not self.peek_token_is('EOF'):
            self.error(f"unexpected {self.peek_token.type} after function body",
                       self.peek_token.lineno)
        return program

    def parse_function(self):
        tok = self.cur_token
        if not self.cur_token_is('INT'):
            self.error(f"expected token to be INT, got {tok.type} instead", tok.lineno)
            return None
        if not self.expect_peek('IDENT'):
            return None
        fn = Function(self.cur_token.value, lineno=tok.lineno)
        if not self.expect_peek('LPAREN'):
            return None
        if not self.expect_peek('RPAREN'):
            return None
        if not self.expect_peek('LBRACE'):
            return None

        self.next_token()
        while not self.cur_token_is('RBRACE') and not self.cur_token_is('EOF'):
            stmt = self.parse_statement()
            if stmt is not None:
                fn.statements.append(stmt)
            self.next_token()

        if not self.cur_token_is('RBRACE'):
            self.error(f"expected token to be RBRACE, got {self.cur_token.type} instead",
                       self.cur_token.lineno)
            return None
        return fn

    def parse_statement(self):
        if self.cur_token_is('RETURN'):
            return self.parse_return_statement()
        if self.cur_token_is('INT'):
            return self.parse_declaration()
        return self.parse_expression_statement()

    def parse_return_statement(self):
        tok = self.cur_token
        self.next_token()
        expr = self.parse_expression(LOWEST)
        if expr is None:
            return None
        # a missing ';' is reported and the statement dropped; parsing goes on
        if not self.expect_peek('SEMICOLON'):
            return None
        return Return(expr, lineno=tok.lineno)

    def parse_declaration(self):
        tok = self.cur_token
        if not self.expect_peek('IDENT'):
            return None
        stmt = VarDecl(self.cur_token.value, lineno=tok.lineno)
        if self.peek_token_is('ASSIGN'):
            self.next_token()
            self.next_token()
            stmt.init_expr = self.parse_expression(LOWEST)
            if stmt.init_expr is None:
                return None
        if not self.expect_peek('SEMICOLON'):
            return None
        return stmt

    def parse_expression_statement(self):
        tok = self.cur_token
        expr = self.parse_expression(LOWEST)
        if expr is None:
            return None
        if not self.expect_peek('SEMICOLON'):
            return None
        return ExprStatement(expr, lineno=tok.lineno)

    # ---- expressions ----
    def parse_expression(self, precedence):
        prefix = self.prefix_parse_fns.get(self.cur_token.type)
        if prefix is None:
            self.no_prefix_parse_fn_error(self.cur_token)
            return None
        left = prefix()

        while left is not None and not self.peek_token_is('SEMICOLON') \
                and precedence < self.peek_precedence():
            infix = self.infix_parse_fns[self.peek_token.type]
            self.next_token()
            left = infix(left)

        return left

    def parse_int_literal(self):
        tok = self.cur_token
        if int(tok.value) > INT64_MAX:
            self.error(f"could not parse {tok.value!r} as a 64-bit integer", tok.lineno)
            return None
        return IntLiteral(tok.value, lineno=tok.lineno)

    def parse_variable(self):
        return Variable(self.cur_token.value, lineno=self.cur_token.lineno)

    def parse_grouped_expression(self):
        self.next_token()
        expr = self.parse_expression(LOWEST)
        if expr is None:
            return None
        if not self.expect_peek('RPAREN'):
            return None
        return expr

    def parse_unary(self):
        tok = self.cur_token
        self.next_token()
        operand = self.parse_expression(PREFIX)
        if operand is None:
            return None
        return UnaryOp(tok.value, operand, lineno=tok.lineno)

    def parse_binary(self, left):
        tok = self.cur_token
        precedence = self.cur_precedence()
        if tok.type in RIGHT_ASSOCIATIVE:
            precedence -= 1
        if tok.type == 'ASSIGN' and not isinstance(left, Variable):
            self.error(f"invalid assignment target {render(left)!r}", tok.lineno)
        self.next_token()
        right = self.parse_expression(precedence)
        if right is None:
            return None
        return BinaryOp(tok.value, left, right, lineno=tok.lineno)

# =====================================================
# SYMBOL TABLE
# =====================================================
class SymbolTable:
    """
    Maps local variable names to their offset from %rbp.

    Offsets are handed out in declaration order: -8, -16, -24, ...
    One table belongs to exactly one compilation. Redeclaration is the
    code generator's call: check `name in table` before declaring.
    """

    def __init__(self):
        self.offsets = {}
        self.stack_index = 0

    def __contains__(self, name):
        return name in self.offsets

    def lookup(self, name):
        return self.offsets.get(name)

    def declare(self, name):
        self.stack_index -= WORD_SIZE
        self.offsets[name] = self.stack_index
        return self.stack_index

    def as_dict(self):
        return dict(self.offsets)

# =====================================================
# CODE GENERATION (x86-64, AT&T syntax)
# =====================================================
SETCC = {
    '==': 'sete',
    '!=': 'setne',
    '<':  'setl',
    '<=': 'setle',
    '>':  'setg',
    '>=': 'setge',
}

class CodeGenerator:
    """
    Walks the AST and writes one instruction per line to `out`.

    Every expression leaves its value in %rax. Binary operators evaluate the
    left operand, push it, evaluate the right operand and pop the left value
    into %rcx before combining.
    """

    def __init__(self, out, symbols=None):
        self.out = out
        self.symbols = symbols if symbols is not None else SymbolTable()
        self.function_name = None
        self.warnings = []

    def emit(self, line):
        self.out.write(line + "\n")

    def gen(self, node):
        if isinstance(node, Program):
            if node.function is None:
                raise CodegenError("program has no function")
            self.gen(node.function)
            return
        if isinstance(node, Function):
            self.function_name = node.name
            self.emit(f".globl {node.name}")
            self.emit(f"{node.name}:")
            self.emit("pushq %rbp")
            self.emit("movq %rsp, %rbp")
            for stmt in node.statements:
                self.gen(stmt)
            return
        if isinstance(node, Return):
            self.gen_expr(node.expr)
            self.emit("movq %rbp, %rsp")
            self.emit("popq %rbp")
            self.emit("ret")
            return
        if isinstance(node, VarDecl):
            self.gen_declaration(node)
            return
        if isinstance(node, ExprStatement):
            self.gen_expr(node.expr)
            return
        raise CodegenError(f"unsupported statement {type(node).__name__}", node.lineno)

    def gen_declaration(self, node):
        if node.name in self.symbols:
            msg = f"variable '{node.name}' already declared, declaration ignored"
            log.warning(msg)
            self.warnings.append(format_error("Codegen", msg, node.lineno, severity="warning"))
            return
        if node.init_expr is not None:
            self.gen_expr(node.init_expr)
        else:
            self.emit("movq $0, %rax")
        self.emit("pushq %rax")
        offset = self.symbols.declare(node.name)
        log.debug("declared %s at %d(%%rbp)", node.name, offset)

    def gen_expr(self, expr):
        if isinstance(expr, IntLiteral):
            self.emit(f"movq ${expr.value}, %rax")
            return
        if isinstance(expr, Variable):
            offset = self.symbols.lookup(expr.name)
            if offset is not None:
                self.emit(f"movq {offset}(%rbp), %rax")
            elif expr.name == self.function_name:
                # call target placeholder: nothing to load
                log.debug("reference to function %s emits no code", expr.name)
            else:
                raise CodegenError(f"undeclared variable '{expr.name}'", expr.lineno)
            return
        if isinstance(expr, UnaryOp):
            self.gen_expr(expr.operand)
            if expr.op == '-':
                self.emit("neg %rax")
            elif expr.op == '~':
                self.emit("not %rax")
            elif expr.op == '!':
                self.emit("cmpq $0, %rax")
                self.emit("movq $0, %rax")
                self.emit("sete %al")
            else:
                raise CodegenError(f"unknown unary operator {expr.op!r}", expr.lineno)
            return
        if isinstance(expr, BinaryOp):
            if expr.op == '=':
                self.gen_assignment(expr)
            else:
                self.gen_binary(expr)
            return
        raise CodegenError(f"unsupported expression {type(expr).__name__}",
                           getattr(expr, 'lineno', None))

    def gen_assignment(self, expr):
        if not isinstance(expr.left, Variable):
            raise CodegenError(f"invalid assignment target {render(expr.left)!r}", expr.lineno)
        offset = self.symbols.lookup(expr.left.name)
        if offset is None:
            raise CodegenError(f"assignment to undeclared variable '{expr.left.name}'", expr.lineno)
        self.gen_expr(expr.right)
        self.emit(f"movq %rax, {offset}(%rbp)")

    def gen_binary(self, expr):
        op = expr.op
        if op not in ('+', '-', '*', '/', '&&', '||') and op not in SETCC:
            raise CodegenError(f"unknown binary operator {op!r}", expr.lineno)

        # && and || evaluate both sides, there is no short-circuit
        self.gen_expr(expr.left)
        self.emit("pushq %rax")
        self.gen_expr(expr.right)

        if op == '+':
            self.emit("popq %rcx")
            self.emit("addq %rcx, %rax")
        elif op == '*':
            self.emit("popq %rcx")
            self.emit("imulq %rcx")
        elif op == '-':
            self.emit("popq %rcx")
            self.emit("subq %rax, %rcx")
            self.emit("movq %rcx, %rax")
        elif op == '/':
            self.emit("movq %rax, %rcx")
            self.emit("popq %rax")
            self.emit("cqto")
            self.emit("idivq %rcx")
        elif op == '||':
            self.emit("popq %rcx")
            self.emit("orq %rcx, %rax")
            self.emit("movq $0, %rax")
            self.emit("setne %al")
        elif op == '&&':
            self.emit("popq %rcx")
            self.emit("cmpq $0, %rcx")
            self.emit("setne %cl")
            self.emit("cmpq $0, %rax")
            self.emit("setne %al")
            self.emit("andb %cl, %al")
            self.emit("movzbq %al, %rax")
        else:
            self.emit("popq %rcx")
            self.emit("cmpq %rax, %rcx")
            self.emit("movq $0, %rax")
            self.emit(f"{SETCC[op]} %al")

# =====================================================
# COMPILER DRIVER
# =====================================================
class Compiler:
    """Tokenizer → Parser → CodeGenerator for one translation unit."""

    def __init__(self, code):
        self.lexer = Lexer(code)
        self.parser = Parser(self.lexer)
        self.symbols = SymbolTable()
        self.generator = None
        self.program = None

    @property
    def errors(self):
        return self.parser.errors

    @property
    def warnings(self):
        return self.generator.warnings if self.generator is not None else []

    def parse(self):
        if self.program is None:
            self.program = self.parser.parse_program()
        return self.program

    def compile(self, out):
        """
        Write assembly for the program to `out`.

        Returns the syntax errors (nothing is written when there are any).
        Raises CodegenError for semantic errors found during generation.
        """
        program = self.parse()
        if self.errors:
            return list(self.errors)
        self.symbols = SymbolTable()
        self.generator = CodeGenerator(out, self.symbols)
        self.generator.gen(program)
        return []

def compile_source(code, verbose=False):
    result = {
        'tokens': [],
        'ast': None,
        'asm': [],
        'errors': [],
        'warnings': [],
        'symbol_table': {},
    }

    result['tokens'] = tokenize(code)

    compiler = Compiler(code)
    buf = io.StringIO()
    try:
        errors = compiler.compile(buf)
    except CodegenError as e:
        errors = [format_error("Codegen", e.msg, e.lineno)]
    else:
        if not errors:
            result['asm'] = buf.getvalue().splitlines()

    result['ast'] = compiler.program
    result['errors'] = errors
    result['warnings'] = list(compiler.warnings)
    result['symbol_table'] = compiler.symbols.as_dict()

    if verbose:
        for msg in result['warnings'] + result['errors']:
            print(msg, file=sys.stderr)
        for line in result['asm']:
            print(line)

    return result

# =====================================================
# TEST PROGRAM
# =====================================================
TEST_PROGRAM = r'''
// sample program, exits with status 5
int main() {
    int a = 2;
    a = a + 3;
    return a;
}
'''

if __name__ == '__main__':
    logging.basicConfig(level=logging.WARNING, format='%(levelname)s: %(message)s')
    if len(sys.argv) > 1:
        with open(sys.argv[1]) as f:
            source = f.read()
    else:
        source = TEST_PROGRAM
    res = compile_source(source, verbose=True)
    sys.exit(1 if res['errors'] else 0)
