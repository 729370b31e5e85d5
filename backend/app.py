from flask import Flask, request, jsonify
from flask_cors import CORS
import c2

app = Flask(__name__)
app.config["MAX_CONTENT_LENGTH"] = 64 * 1024  # source text limit
app.config.from_prefixed_env("C2")
CORS(app)  # allow cross-origin requests

def ast_to_dict(node):
    """
    Serialize AST to dict recursively
    """
    if node is None:
        return None
    d = {"type": type(node).__name__}
    if isinstance(node, c2.Program):
        d["function"] = ast_to_dict(node.function)
    elif isinstance(node, c2.Function):
        d["name"] = node.name
        d["statements"] = [ast_to_dict(s) for s in node.statements]
    elif isinstance(node, c2.Return):
        d["expr"] = ast_to_dict(node.expr)
    elif isinstance(node, c2.VarDecl):
        d["name"] = node.name
        d["init_expr"] = ast_to_dict(node.init_expr)
    elif isinstance(node, c2.ExprStatement):
        d["expr"] = ast_to_dict(node.expr)
    elif isinstance(node, c2.BinaryOp):
        d["op"] = node.op
        d["left"] = ast_to_dict(node.left)
        d["right"] = ast_to_dict(node.right)
    elif isinstance(node, c2.UnaryOp):
        d["op"] = node.op
        d["operand"] = ast_to_dict(node.operand)
    elif isinstance(node, c2.IntLiteral):
        d["value"] = node.value
    elif isinstance(node, c2.Variable):
        d["name"] = node.name
    return d

def empty_response(errors):
    return {
        "tokens": [],
        "ast": {},
        "assembly": [],
        "errors": errors,
        "warnings": [],
        "symbol_table": {}
    }

@app.route("/compile", methods=["POST"])
def compile_code():
    data = request.get_json(silent=True)
    code = data.get("code") if isinstance(data, dict) else None
    if not isinstance(code, str):
        return jsonify(empty_response(["Request error: expected a JSON body with a 'code' string"])), 400
    try:
        result = c2.compile_source(code)

        processed_tokens = [
            {"type": token.type, "value": token.value, "lineno": token.lineno}
            for token in result['tokens']
        ]

        ast_dict = ast_to_dict(result['ast']) if result['ast'] else {}

        if result['errors']:
            app.logger.info("compilation failed with %d error(s)", len(result['errors']))

        response = {
            "tokens": processed_tokens,
            "ast": ast_dict,
            "assembly": result['asm'],
            "errors": result['errors'],
            "warnings": result['warnings'],
            "symbol_table": result['symbol_table']
        }
        return jsonify(response)
    except Exception as e:
        app.logger.exception("unexpected error while compiling")
        return jsonify(empty_response([f"Unexpected error: {str(e)}"])), 500

if __name__ == "__main__":
    app.run(debug=True)
