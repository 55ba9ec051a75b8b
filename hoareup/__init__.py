"""hoareup — Hoare logic with updates and a verification condition generator"""

__version__ = "0.1.0"

from hoareup.ast_nodes import (
    Identifier, IdentifierPool, BinOp, CmpOp,
    Expr, EConst, EVar, EBin,
    BExpr, BConst, BCmp, BAnd, BOr, BNot,
    Formula, FConst, FCmp, FBool, FAnd, FOr, FNot, FImplies,
    Stmt, Skip, Assign, If, While, Seq,
    size, seq, free_identifiers,
)
from hoareup.state import State
from hoareup.semantics import eval_expr, eval_bool, satisfies, execute, runs_to
from hoareup.updates import (
    Update, identity, assign,
    apply_expr, apply_bool, apply_formula, apply_state,
)
from hoareup.hoare import HoareTriple, valid_triple, find_counterexample
from hoareup.inference import derive_free, derive_annotated, side_conditions
from hoareup.vcgen import vcgen, generate_vcs
from hoareup.verifier import Verifier, verify_triple
