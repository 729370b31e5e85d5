"""Tokenizer tests."""

import pytest

from c2 import Lexer, tokenize


def kinds(code):
    return [(t.type, t.value) for t in tokenize(code)]


@pytest.mark.parametrize(
    "text,expected_type",
    [
        ("{", "LBRACE"),
        ("}", "RBRACE"),
        ("(", "LPAREN"),
        (")", "RPAREN"),
        (";", "SEMICOLON"),
        ("int", "INT"),
        ("return", "RETURN"),
        ("main", "IDENT"),
        ("_tmp1", "IDENT"),
        ("42", "INT_LITERAL"),
        ("-", "MINUS"),
        ("+", "PLUS"),
        ("*", "ASTERISK"),
        ("/", "SLASH"),
        ("~", "BITWISE_COMPLEMENT"),
        ("!", "LOGICAL_NEGATION"),
        ("<", "LT"),
        (">", "GT"),
        ("<=", "LT_EQ"),
        (">=", "GT_EQ"),
        ("==", "EQ"),
        ("!=", "NOT_EQ"),
        ("&&", "AND"),
        ("||", "OR"),
        ("=", "ASSIGN"),
    ],
)
def test_single_token(text, expected_type):
    assert kinds(text) == [(expected_type, text)]


def test_punctuation_sequence():
    assert kinds("{}();") == [
        ("LBRACE", "{"),
        ("RBRACE", "}"),
        ("LPAREN", "("),
        ("RPAREN", ")"),
        ("SEMICOLON", ";"),
    ]


def test_simple_main():
    assert kinds("int main(){ return 2; }") == [
        ("INT", "int"),
        ("IDENT", "main"),
        ("LPAREN", "("),
        ("RPAREN", ")"),
        ("LBRACE", "{"),
        ("RETURN", "return"),
        ("INT_LITERAL", "2"),
        ("SEMICOLON", ";"),
        ("RBRACE", "}"),
    ]


def test_two_char_operators_are_greedy():
    assert kinds("a<=b==!c!=d>=e") == [
        ("IDENT", "a"),
        ("LT_EQ", "<="),
        ("IDENT", "b"),
        ("EQ", "=="),
        ("LOGICAL_NEGATION", "!"),
        ("IDENT", "c"),
        ("NOT_EQ", "!="),
        ("IDENT", "d"),
        ("GT_EQ", ">="),
        ("IDENT", "e"),
    ]


def test_keyword_prefix_is_identifier():
    assert kinds("integer returned int_") == [
        ("IDENT", "integer"),
        ("IDENT", "returned"),
        ("IDENT", "int_"),
    ]


def test_illegal_character_is_a_token():
    assert kinds("2 $ 3 & 4") == [
        ("INT_LITERAL", "2"),
        ("ILLEGAL", "$"),
        ("INT_LITERAL", "3"),
        ("ILLEGAL", "&"),
        ("INT_LITERAL", "4"),
    ]


def test_comments_and_line_numbers():
    toks = tokenize("int main() {\n  // nothing here\n  return 0;\n}\n")
    assert [t.type for t in toks] == [
        "INT", "IDENT", "LPAREN", "RPAREN", "LBRACE",
        "RETURN", "INT_LITERAL", "SEMICOLON", "RBRACE",
    ]
    assert toks[0].lineno == 1
    assert toks[5].lineno == 3
    assert toks[-1].lineno == 4


def test_eof_repeats_forever():
    lexer = Lexer("x")
    assert lexer.next_token().type == "IDENT"
    for _ in range(3):
        tok = lexer.next_token()
        assert tok.type == "EOF"
        assert tok.value == ""


def test_empty_input():
    assert tokenize("   \n\t ") == []
    assert Lexer("").next_token().type == "EOF"
