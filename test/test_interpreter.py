"""
Interpreter tests for toypl
Evaluation of every construct, scoping rules, closures and the object model
"""

import sys
import pytest
from environment import Binding
from error_handling import ToyplParseError, ToyplRuntimeError
from interpreter import RECURSION_LIMIT, Interpreter, create_debug_interpreter, evaluate
from stdlib import FUNCTION, NULL, OBJECT, UNDEFINED, Value
from syntax import Node
from utilities import unwrap_value


def record(interpreter, name):
  return interpreter.global_env.record[name]


class TestLiterals:

  def test_number(self, run):
    assert run("1") == Value("Num", 1.0)

  def test_string(self, run):
    assert run('"hello"') == Value("String", "hello")

  def test_null(self, run):
    assert run("null") == NULL

  def test_version_global(self, run):
    assert run("VERSION") == Value("String", "v1.2.3")


class TestDefinitions:

  @pytest.mark.parametrize("source,expected", [
    ("def x 1", Value("Num", 1.0)),
    ("def x true", Value("Bool", True)),
    ("def x false", Value("Bool", False)),
    ("def x null", NULL),
  ])
  def test_def(self, run, interpreter, source, expected):
    assert run(source) == expected
    assert record(interpreter, "x") == Binding(expected, False)

  def test_def_mut(self, run, interpreter):
    assert run("def mut x 1") == Value("Num", 1.0)
    assert record(interpreter, "x").mutable is True

  def test_set_mutable(self, run, interpreter):
    result = run("""
      def mut x 10
      set x 20
    """)
    assert result == Value("Num", 20.0)
    assert record(interpreter, "x") == Binding(Value("Num", 20.0), True)

  def test_set_immutable(self, run):
    with pytest.raises(ToyplRuntimeError, match='Cannot mutate the defined value "x".'):
      run("""
        def x 10
        set x 20
      """)

  def test_undefined_variable(self, run):
    with pytest.raises(ToyplRuntimeError, match='Variable "nope" is not defined.'):
      run("nope")

  def test_def_on_call_is_rejected(self, run):
    with pytest.raises(ToyplRuntimeError, match="def and set on CallExpression"):
      run("def f() 1")

  def test_builtins_are_immutable(self, run):
    with pytest.raises(ToyplRuntimeError):
      run("set + 1")


class TestScoping:

  def test_block_scope(self, run, interpreter):
    result = run("""
      def x 1
      def y {
        def x 2
      }
      x
    """)
    assert result == Value("Num", 1.0)
    assert interpreter.global_env.lookup("y") == Value("Num", 2.0)

  def test_block_sees_outer(self, run):
    assert unwrap_value(run("""
      def x 10
      {
        def y 20
        + (x y)
      }
    """)) == 30

  def test_empty_block_is_undefined(self, run):
    assert run("{}") == UNDEFINED

  def test_set_reaches_outer_binding(self, run):
    assert unwrap_value(run("""
      def mut x 1
      { set x 5 }
      x
    """)) == 5


class TestControlFlow:

  def test_if_else(self, run, interpreter):
    result = run("""
      def x 10
      def mut y 0
      if >(x 10)
          then set y 20
          else set y 30
    """)
    assert unwrap_value(result) == 30
    assert unwrap_value(interpreter.global_env.lookup("y")) == 30

  def test_else_if(self, run):
    assert unwrap_value(run("""
      def x 10
      def mut y 0
      if <(x 9)
          then set y 20
          else if >(x 9)
               then set y 30
               else set y 40
    """)) == 30

  @pytest.mark.parametrize("test,expected", [
    ("0", "no"), ("1", "yes"), ('""', "no"), ('"a"', "yes"),
    ("null", "no"), ("false", "no"), ("true", "yes"),
    ("{}", "no"), ("lambda() 0", "yes"), ("class {}", "yes"),
  ])
  def test_truthiness(self, run, test, expected):
    assert run(f'if {test} then "yes" else "no"') == Value("String", expected)

  def test_while(self, run, interpreter):
    result = run("""
      def mut x 20
      while > (x 10)
          set x -(x 1)
    """)
    assert unwrap_value(result) == 10
    assert unwrap_value(interpreter.global_env.lookup("x")) == 10

  def test_while_never_runs(self, run):
    assert run("while false 1") == UNDEFINED

  def test_do_while(self, run, interpreter):
    result = run("""
      def mut x 0
      do set x +(x 1)
          while < (x 10)
    """)
    assert unwrap_value(result) == 10

  def test_do_while_runs_once(self, run, interpreter):
    assert unwrap_value(run("def mut x 0  do set x +(x 1) while <(x 3)")) == 3
    assert unwrap_value(interpreter.global_env.lookup("x")) == 3
    assert unwrap_value(run("def mut y 5  do set y +(y 1) while false")) == 6


class TestFunctions:

  def test_native_calls(self, run):
    assert unwrap_value(run("+ (1 2)")) == 3
    assert unwrap_value(run("-(2)")) == -2

  def test_square(self, run):
    assert unwrap_value(run("""
      def square lambda(x) *(x x)
      square(4)
    """)) == 16

  def test_lambda_glyph(self, run):
    assert unwrap_value(run("""
      def square λ(x) *(x x)
      square(2)
    """)) == 4

  def test_block_body(self, run):
    assert unwrap_value(run("""
      def calc λ(x y) {
          def z 30
          +(*(x y) z)
      }
      calc(10 20)
    """)) == 230

  def test_closure_over_outer_locals(self, run):
    assert unwrap_value(run("""
      def value 100
      def calc λ(x y) {
          def z +(x y)

          def inner λ(foo) +(+(foo z) value)
      }
      def fn calc(10 20)
      fn(30)
    """)) == 160

  def test_callback(self, run):
    assert unwrap_value(run("""
      def onClick λ(callback) {
          def x 10
          def y 20
          callback( +(x y) )
      }

      onClick( λ(data) *(data 10) )
    """)) == 300

  def test_counter(self, run):
    assert unwrap_value(run("""
      def make-counter λ() {
        def mut count 0
        λ() set count +(count 1)
      }
      def first make-counter()
      def second make-counter()
      first()
      first()
      second()
      first()
    """)) == 3

  def test_immediate_recall(self, run):
    assert unwrap_value(run("""
      def adder λ(x) λ(y) +(x y)
      adder(3)(4)
    """)) == 7

  def test_recursive_factorial(self, run):
    assert unwrap_value(run("""
      def factorial λ(x) if =(x 1)
                         then 1
                         else *( x factorial( -(x 1) ) )

      factorial(5)
    """)) == 120

  def test_iterative_factorial(self, run):
    assert unwrap_value(run("""
      def factorial λ(x) {
          def mut result x
          def mut i x
          while >(i 1) {
              set i -(i 1)
              set result *(result i)
          }
      }

      factorial(5)
    """)) == 120

  def test_deep_recursion(self, run):
    assert unwrap_value(run("""
      def count λ(n) if =(n 0) then 0 else +(1 count(-(n 1)))
      count(500)
    """)) == 500

  def test_missing_arguments_are_undefined(self, run):
    assert run("def f λ(a b) b  f(1)") == UNDEFINED

  def test_extra_arguments_are_ignored(self, run):
    assert unwrap_value(run("def f λ(a) a  f(1 2 3)")) == 1

  def test_parameters_are_immutable(self, run):
    with pytest.raises(ToyplRuntimeError):
      run("def f λ(a) set a 2  f(1)")

  def test_static_scope(self, run):
    assert unwrap_value(run("""
      def x 1
      def get-x λ() x
      def shadow λ(x) get-x()
      shadow(99)
    """)) == 1

  def test_lambda_value(self, run):
    result = run("lambda(a b) a")
    assert result.type == FUNCTION
    assert result.value.params == ("a", "b")
    assert result.value.is_method is False

  def test_calling_non_function(self, run):
    with pytest.raises(ToyplRuntimeError, match='"x" is not a function'):
      run("def x 1  x()")


class TestClasses:

  def test_method_call(self, run):
    assert unwrap_value(run("""
      def Point class {
          calc(x y) +(x y)
      }

      def point new Point()
      point.calc(10 20)
    """)) == 30

  def test_init_and_sibling_methods(self, run, interpreter):
    run("""
      def Point class {
          init(x y) {
              def mut this.x x
              def mut this.y y
          }
          calc() +(this.x this.y)
          calc2() {
              set this.x 20
              set this.y 30
              this.calc()
          }
      }

      def point new Point(10 20)
      def calced point.calc()
      def calced2 point.calc2()
    """)
    assert unwrap_value(interpreter.global_env.lookup("calced")) == 30
    assert unwrap_value(interpreter.global_env.lookup("calced2")) == 50

  def test_nested_member_paths(self, run, interpreter):
    run("""
      def Point class {
        init(x) {
          def this.x x
        }
      }

      def Point3D class {
        init(y) {
          def this.y y
        }
      }

      def point3D new Point3D(20)
      def point new Point(point3D)
      def prop point.x.y
      def point.x.z 100
      def sub-prop point.x.z
    """)
    assert unwrap_value(interpreter.global_env.lookup("prop")) == 20
    assert unwrap_value(interpreter.global_env.lookup("sub-prop")) == 100

  def test_composition(self, run, interpreter):
    run("""
      def Point class {
        init(x y) {
          def this.x x
          def this.y y
        }
      }

      def Point3D class {
        init(p x y z) {
          def parent new p(x y)
          def this.x parent.x
          def this.y parent.y
          def this.z z
        }
      }

      def point3D new Point3D(Point 10 20 30)
      def point3D-2 new Point3D(Point 100 200 300)

      def test1 point3D.x
      def test2 point3D.y
      def test3 point3D-2.x
      def test4 point3D-2.z
    """)
    lookup = interpreter.global_env.lookup
    assert unwrap_value(lookup("test1")) == 10
    assert unwrap_value(lookup("test2")) == 20
    assert unwrap_value(lookup("test3")) == 100
    assert unwrap_value(lookup("test4")) == 300

  def test_instances_are_independent(self, run, interpreter):
    run("""
      def Box class {
        init(v) def mut this.v v
        put(v) set this.v v
      }
      def a new Box(1)
      def b new Box(2)
      a.put(10)
    """)
    a = interpreter.global_env.lookup("a").value
    b = interpreter.global_env.lookup("b").value
    assert unwrap_value(a.lookup("v")) == 10
    assert unwrap_value(b.lookup("v")) == 2
    assert a.lookup("put") is b.lookup("put")

  def test_this_is_self_and_immutable(self, run, interpreter):
    run("""
      def Thing class { me() this }
      def t new Thing()
    """)
    thing = interpreter.global_env.lookup("t")
    assert run("t.me()") == thing
    assert unwrap_value(run("=(t t.me())")) is True
    with pytest.raises(ToyplRuntimeError):
      run("set t.this 1")

  def test_class_value(self, run):
    result = run("class { m() 1 }")
    assert result.type == OBJECT
    method = result.value.lookup("m")
    assert method.type == FUNCTION and method.value.is_method is True

  def test_init_result_is_discarded(self, run):
    result = run("def C class { init() 42 }  new C()")
    assert result.type == OBJECT

  def test_computed_access(self, run):
    assert unwrap_value(run("""
      def P class { init() def this.name "toy" }
      def p new P()
      p["name"]
    """)) == "toy"

  def test_computed_definition(self, run):
    assert unwrap_value(run("""
      def P class {}
      def p new P()
      def p["answer"] 42
      p.answer
    """)) == 42

  def test_computed_key_from_method_parameter(self, run):
    assert unwrap_value(run("""
      def P class {
        init() def mut this.x 1
        put(k v) set this[k] v
        get(k) this[k]
      }
      def p new P()
      p.put("x" 5)
      p.get("x")
    """)) == 5

  def test_computed_read_and_write_use_same_key(self, run, interpreter):
    result = run("""
      def key "b"
      def P class {
        init() {
          def mut this.key "a"
          def mut this.a 1
          def mut this.b 2
        }
      }
      def p new P()
      set p[key] 20
      p[key]
    """)
    assert unwrap_value(result) == 20
    fields = unwrap_value(interpreter.global_env.lookup("p"))
    assert fields["a"] == 1 and fields["b"] == 20

  def test_computed_key_must_be_string(self, run):
    with pytest.raises(ToyplRuntimeError, match="must be a String"):
      run("""
        def P class {}
        def p new P()
        p[1]
      """)

  def test_member_of_non_object(self, run):
    with pytest.raises(ToyplRuntimeError, match="is not an object"):
      run("def x 1  x.y")

  def test_new_of_non_object(self, run):
    with pytest.raises(ToyplRuntimeError):
      run("def x 1  new x()")

  def test_unwrap_object(self, run):
    fields = unwrap_value(run("""
      def P class { init(a) def this.a a }
      new P(1)
    """))
    assert fields["a"] == 1
    assert "this" not in fields


class TestInterpreterProtocol:

  def test_unsupported_node(self, interpreter):
    with pytest.raises(ToyplRuntimeError, match="Unsupported AST type"):
      interpreter.evaluate(Node())

  def test_evaluate_entry_point(self):
    assert unwrap_value(evaluate("*(6 7)", version="v0.0.1")) == 42
    assert evaluate("VERSION", version="v0.0.1") == Value("String", "v0.0.1")

  def test_evaluate_propagates_syntax_errors(self):
    with pytest.raises(ToyplParseError):
      evaluate("def", version="v0")

  def test_stack_exhaustion_is_a_runtime_error(self, parser, interpreter, monkeypatch):
    def exhausted(node, env=None):
      raise RecursionError("maximum recursion depth exceeded")

    monkeypatch.setattr(interpreter, "evaluate", exhausted)
    with pytest.raises(ToyplRuntimeError, match="Maximum recursion depth exceeded"):
      interpreter.run(parser.parse("1"))

  def test_recursion_limit_is_raised(self, interpreter):
    assert sys.getrecursionlimit() >= RECURSION_LIMIT

  def test_fresh_global_environment(self):
    evaluate("def x 1", version="v0")
    with pytest.raises(ToyplRuntimeError):
      evaluate("x", version="v0")

  def test_debug_trace(self, parser, capsys):
    interpreter = create_debug_interpreter()
    interpreter.evaluate(parser.parse("1"))
    out = capsys.readouterr().out
    assert "Evaluating: Program" in out
    assert "Evaluating: NumericLiteral" in out

  def test_custom_global_env(self, parser):
    interpreter = Interpreter(version="v9")
    assert interpreter.evaluate(parser.parse("VERSION")) == Value("String", "v9")
