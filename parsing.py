"""
AQA Pseudocode Parser
pyparsing grammar turning pseudocode source text into syntax tree nodes
"""

from typing import Optional

from pyparsing import (
    Keyword, Literal, MatchFirst, Opt, ZeroOrMore, OneOrMore, Forward, Group,
    ParseBaseException, ParserElement, Regex, StringEnd, Suppress, DelimitedList,
    infix_notation, one_of, OpAssoc
)

from error_handling import AQAParseError, KEYWORDS, parse_error_from
from syntax_tree import (
    ASTNode, WHILE, REPEAT, TRUE_LITERAL, FALSE_LITERAL,
    make_block, make_assignment, make_subroutine_def, make_call, make_conditional,
    make_loop, make_relation, make_binary, make_unary, make_output, make_bracket,
    make_variable_ref, make_number_literal, make_boolean_literal,
)

# Enable packrat parsing for performance
ParserElement.enable_packrat()


UNARY_OPERATIONS = {'+': 'ADD', '-': 'SUB', 'NOT': 'NOT'}

BINARY_OPERATIONS = {
    '+': 'ADD', '-': 'SUB', '*': 'MUL', '/': 'DIV',
    'AND': 'AND', 'OR': 'OR',
}

RELATION_SYMBOLS = {
    '=': 'EQ', '!=': 'NEQ', '≠': 'NEQ',
    '<': 'LT', '>': 'GT',
    '<=': 'LEQ', '≤': 'LEQ', '>=': 'GEQ', '≥': 'GEQ',
}


def _unary_action(tokens):
    op, operand = tokens[0][0], tokens[0][1]
    return make_unary(UNARY_OPERATIONS[op], operand)


def _fold_left(builder, symbols):
    """Parse action folding 'a op b op c' into left-nested nodes"""
    def action(tokens):
        items = list(tokens[0])
        node = items[0]
        for i in range(1, len(items), 2):
            node = builder(symbols[items[i]], node, items[i + 1])
        return node

    return action


class AQAGrammar:
    """AQA pseudocode grammar definition using pyparsing"""

    def __init__(self, debug: bool = False):
        self.debug = debug
        self._setup_grammar()

    def _setup_grammar(self):
        """Setup expression and statement grammar"""

        expression = Forward()
        statement = Forward()

        comment = Regex(r"#.*")

        # Keywords
        kw = {word: Keyword(word) for word in KEYWORDS}
        true_kw = Keyword(TRUE_LITERAL)
        false_kw = Keyword(FALSE_LITERAL)
        reserved = MatchFirst(list(kw.values()) + [true_kw, false_kw])

        # Names are raw strings; keywords can never be names
        name = ~reserved + Regex(r"[A-Za-z]\w*")
        assign_op = Suppress(Literal("<-") | Literal("←"))
        lpar, rpar = Suppress("("), Suppress(")")

        # Literals keep their text as the significand
        number = Regex(r"\d+(?:\.\d+)?").set_parse_action(lambda t: make_number_literal(t[0]))
        boolean = (true_kw | false_kw).set_parse_action(lambda t: make_boolean_literal(t[0]))

        call = (
            name + lpar + Opt(DelimitedList(expression)) + rpar
        ).set_parse_action(lambda t: make_call(t[0], list(t)[1:]))

        variable = name.copy().set_parse_action(lambda t: make_variable_ref(t[0]))
        bracket = (lpar + expression + rpar).set_parse_action(lambda t: make_bracket(t[0]))

        operand = number | boolean | call | variable | bracket

        sign_op = one_of("+ -")
        mul_op = one_of("* /")
        add_op = one_of("+ -")
        rel_op = Regex(r"<=|>=|!=|≠|≤|≥|=|<(?!-)|>")

        # Highest precedence first
        expression <<= infix_notation(operand, [
            (sign_op, 1, OpAssoc.RIGHT, _unary_action),
            (mul_op, 2, OpAssoc.LEFT, _fold_left(make_binary, BINARY_OPERATIONS)),
            (add_op, 2, OpAssoc.LEFT, _fold_left(make_binary, BINARY_OPERATIONS)),
            (rel_op, 2, OpAssoc.LEFT, _fold_left(make_relation, RELATION_SYMBOLS)),
            (kw['NOT'], 1, OpAssoc.RIGHT, _unary_action),
            (kw['AND'], 2, OpAssoc.LEFT, _fold_left(make_binary, BINARY_OPERATIONS)),
            (kw['OR'], 2, OpAssoc.LEFT, _fold_left(make_binary, BINARY_OPERATIONS)),
        ])

        # Statement lists fold into a right-nested Sequence chain
        block = OneOrMore(statement).set_parse_action(lambda t: make_block(list(t)))

        constant_decl = (
            kw['CONSTANT'].suppress() + name + assign_op + expression
        ).set_parse_action(lambda t: make_assignment(t[0], t[1], constant=True))

        assignment = (
            name + assign_op + expression
        ).set_parse_action(lambda t: make_assignment(t[0], t[1]))

        output = (
            kw['OUTPUT'].suppress() + expression
        ).set_parse_action(lambda t: make_output(t[0]))

        if_stmt = (
            kw['IF'].suppress() + expression + kw['THEN'].suppress() + block +
            Opt(kw['ELSE'].suppress() + block) + kw['ENDIF'].suppress()
        ).set_parse_action(lambda t: make_conditional(t[0], t[1], t[2] if len(t) > 2 else None))

        while_stmt = (
            kw['WHILE'].suppress() + expression + block + kw['ENDWHILE'].suppress()
        ).set_parse_action(lambda t: make_loop(WHILE, t[0], t[1]))

        repeat_stmt = (
            kw['REPEAT'].suppress() + block + kw['UNTIL'].suppress() + expression
        ).set_parse_action(lambda t: make_loop(REPEAT, t[1], t[0]))

        def make_subroutine(tokens):
            # name, [params], optional body, optional 'RETURN' expr
            items = list(tokens)
            rest = items[2:]
            ret = None
            if len(rest) >= 2 and isinstance(rest[-2], str) and rest[-2] == 'RETURN':
                ret = rest[-1]
                rest = rest[:-2]
            body = rest[0] if rest else None
            return make_subroutine_def(items[0], list(items[1]), body, ret)

        subroutine_def = (
            kw['SUBROUTINE'].suppress() + name +
            lpar + Group(Opt(DelimitedList(name))) + rpar +
            Opt(block) +
            Opt(kw['RETURN'] + expression) +
            kw['ENDSUBROUTINE'].suppress()
        ).set_parse_action(make_subroutine)

        statement <<= (
            constant_decl | subroutine_def | if_stmt | while_stmt | repeat_stmt |
            output | assignment | call
        )

        program = ZeroOrMore(statement) + StringEnd()
        program.ignore(comment)
        expression.ignore(comment)

        self.expression = expression
        self.statement = statement
        self.block = block
        self.program = program
        self.name = name

    def parse_program(self, text: str, filename: str = "<input>") -> Optional[ASTNode]:
        """Parse a complete program; an empty program gives None"""
        try:
            result = self.program.parse_string(text, parse_all=True)
        except ParseBaseException as e:
            raise parse_error_from(e, text, filename) from e
        statements = list(result)
        if self.debug:
            print(f"Parsed {len(statements)} top-level statements")
        return make_block(statements)

    def parse_expression(self, text: str, filename: str = "<input>") -> ASTNode:
        """Parse a single expression"""
        try:
            result = self.expression.parse_string(text, parse_all=True)
        except ParseBaseException as e:
            raise parse_error_from(e, text, filename) from e
        return result[0]


class AQAParser:
    """Main AQA parser reading files and strings"""

    def __init__(self, debug: bool = False):
        self.debug = debug
        self.grammar = AQAGrammar(debug)

    def parse_file(self, filepath: str) -> Optional[ASTNode]:
        """Parse an AQA source file"""
        try:
            with open(filepath, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            raise AQAParseError("File not found", filename=filepath)
        except UnicodeDecodeError as e:
            raise AQAParseError(f"Cannot decode file: {e}", filename=filepath)
        if self.debug:
            print(f"Parsing {filepath} ({len(content)} characters)")
        return self.grammar.parse_program(content, filepath)

    def parse_string(self, text: str, filename: str = "<input>") -> Optional[ASTNode]:
        """Parse AQA source code from string"""
        return self.grammar.parse_program(text, filename)

    def parse_expression(self, text: str, filename: str = "<input>") -> ASTNode:
        """Parse a single AQA expression"""
        return self.grammar.parse_expression(text, filename)


# Factory functions for creating parsers
def create_parser(debug: bool = False) -> AQAParser:
    """Create an AQA parser"""
    return AQAParser(debug=debug)


def create_debug_parser() -> AQAParser:
    """Create an AQA parser with debug enabled"""
    return AQAParser(debug=True)
