from reachgraph.analysis.callgraph import Algorithm, HierarchyResolver, TypeHierarchyIndex
from reachgraph.analysis.callgraph.signatures import (
    is_explicit_implementation,
    is_return_type_compatible,
)
from reachgraph.language.model import Module, Program

from .base import (
    CallGraphTestBase,
    call,
    callvirt,
    cls,
    ctor,
    interface,
    ldvirtftn,
    method,
    newobj,
    program,
    ref,
    short,
    struct,
    zoo,
)


class HierarchyDispatchTest(CallGraphTestBase):
    def resolve(self, prog, type, name, **kwargs):
        resolver = HierarchyResolver(TypeHierarchyIndex(prog))
        target = prog.resolve_method(ref(type, name, **kwargs))
        return {short(m.identity) for m in resolver.resolve(target)}

    def test_abstract_target_reaches_every_override(self):
        prog = zoo(callvirt("Zoo.Animal", "Speak"))
        result = self.analyze(prog)
        self.assertEqual(
            self.callees(result, "Zoo.Program::Main"),
            {"Zoo.Dog::Speak", "Zoo.Cat::Speak", "Zoo.Bird::Speak"},
        )

    def test_abstract_target_is_not_a_candidate(self):
        prog = zoo()
        self.assertNotIn("Zoo.Animal::Speak", self.resolve(prog, "Zoo.Animal", "Speak"))

    def test_virtual_function_pointer_load(self):
        prog = zoo(ldvirtftn("Zoo.Animal", "Speak"))
        result = self.analyze(prog)
        self.assertEqual(len(self.callees(result, "Zoo.Program::Main")), 3)

    def test_concrete_virtual_target_is_included(self):
        prog = program(
            cls("Base", method("Run", virtual=True, new_slot=True)),
            cls("Derived", method("Run", virtual=True), base="Zoo.Base"),
        )
        self.assertEqual(self.resolve(prog, "Zoo.Base", "Run"),
                         {"Zoo.Base::Run", "Zoo.Derived::Run"})

    def test_hiding_method_is_excluded(self):
        prog = program(
            cls("A", method("Speak", virtual=True, new_slot=True)),
            cls("B", method("Speak", virtual=True, new_slot=True), base="Zoo.A"),
            cls("C", method("Speak"), base="Zoo.A"),
        )
        self.assertEqual(self.resolve(prog, "Zoo.A", "Speak"), {"Zoo.A::Speak"})

    def test_override_below_a_hiding_method(self):
        # D overrides B's new slot, not A's; it is still structurally
        # indistinguishable, so the hierarchy strategy keeps it.
        prog = program(
            cls("A", method("Speak", virtual=True, new_slot=True)),
            cls("B", method("Speak", virtual=True, new_slot=True), base="Zoo.A"),
            cls("D", method("Speak", virtual=True), base="Zoo.B"),
        )
        self.assertEqual(self.resolve(prog, "Zoo.A", "Speak"), {"Zoo.A::Speak", "Zoo.D::Speak"})

    def test_covariant_return(self):
        prog = program(
            cls("Animal", method("Clone", virtual=True, new_slot=True, returns="Zoo.Animal")),
            cls("Dog", method("Clone", virtual=True, returns="Zoo.Dog"), base="Zoo.Animal"),
            cls("Rock", method("Clone", virtual=True, returns="Zoo.Rock"), base="Zoo.Animal"),
        )
        # Rock.Clone returns Zoo.Rock, which derives from Zoo.Animal, so it
        # is compatible as well; only unrelated return types are rejected.
        self.assertEqual(
            self.resolve(prog, "Zoo.Animal", "Clone", returns="Zoo.Animal"),
            {"Zoo.Animal::Clone", "Zoo.Dog::Clone", "Zoo.Rock::Clone"},
        )

    def test_unrelated_return_type_is_rejected(self):
        prog = program(
            cls("Animal", method("Clone", virtual=True, new_slot=True, returns="Zoo.Animal")),
            cls("Dog", method("Clone", virtual=True, returns="System.String"), base="Zoo.Animal"),
        )
        self.assertEqual(self.resolve(prog, "Zoo.Animal", "Clone", returns="Zoo.Animal"),
                         {"Zoo.Animal::Clone"})

    def test_parameter_types_must_match(self):
        prog = program(
            cls("Base", method("Feed", virtual=True, new_slot=True, params=["System.Int32"])),
            cls("Same", method("Feed", virtual=True, params=["System.Int32"]), base="Zoo.Base"),
            cls("Other", method("Feed", virtual=True, params=["System.Int64"]), base="Zoo.Base"),
        )
        self.assertEqual(
            self.resolve(prog, "Zoo.Base", "Feed", params=["System.Int32"]),
            {"Zoo.Base::Feed", "Zoo.Same::Feed"},
        )

    def test_interface_default_method(self):
        prog = program(
            interface("IShape", method("Draw", virtual=True)),
            cls("Square", ctor(), interfaces=["Zoo.IShape"]),
        )
        self.assertEqual(self.resolve(prog, "Zoo.IShape", "Draw"), {"Zoo.IShape::Draw"})

    def test_interface_implementations(self):
        prog = program(
            interface("IShape", method("Draw", abstract=True)),
            cls("Square", method("Draw", virtual=True), interfaces=["Zoo.IShape"]),
            cls("Circle", method("Draw", virtual=True), interfaces=["Zoo.IShape"]),
            cls("Line", method("Draw", virtual=True)),
        )
        self.assertEqual(self.resolve(prog, "Zoo.IShape", "Draw"),
                         {"Zoo.Square::Draw", "Zoo.Circle::Draw"})

    def test_interface_implemented_by_base_method(self):
        # Shape does not implement IShape; its Draw satisfies Square's interface.
        prog = program(
            interface("IShape", method("Draw", abstract=True)),
            cls("Shape", method("Draw", virtual=True), ctor()),
            cls("Square", ctor(), base="Zoo.Shape", interfaces=["Zoo.IShape"]),
            cls("Program", method("Main", newobj("Zoo.Square"), callvirt("Zoo.IShape", "Draw"),
                                  static=True)),
            entry=ref("Zoo.Program", "Main"),
        )
        self.assertEqual(self.resolve(prog, "Zoo.IShape", "Draw"), {"Zoo.Shape::Draw"})
        result = self.analyze(prog)
        self.assertIn(("Zoo.Program::Main", "Zoo.Shape::Draw"), self.edges(result))

    def test_explicit_interface_implementation(self):
        prog = program(
            interface("IShape", method("Draw", abstract=True)),
            cls(
                "Square",
                method("Zoo.IShape.Draw", virtual=True, visibility="private",
                       overrides=[ref("Zoo.IShape", "Draw")]),
                interfaces=["Zoo.IShape"],
            ),
        )
        self.assertEqual(self.resolve(prog, "Zoo.IShape", "Draw"),
                         {"Zoo.Square::Zoo.IShape.Draw"})

    def test_explicit_binding_ignores_method_name(self):
        prog = program(
            interface("IShape", method("Draw", abstract=True)),
            cls(
                "Square",
                method("Explicit", virtual=True, overrides=[ref("Zoo.IShape", "Draw")]),
                interfaces=["Zoo.IShape"],
            ),
        )
        self.assertEqual(self.resolve(prog, "Zoo.IShape", "Draw"), {"Zoo.Square::Explicit"})

    def test_implementer_through_extending_interface(self):
        prog = program(
            interface("IShape", method("Draw", abstract=True)),
            interface("ISolid", extends=["Zoo.IShape"]),
            cls("Cube", method("Draw", virtual=True), interfaces=["Zoo.ISolid"]),
        )
        self.assertEqual(self.resolve(prog, "Zoo.IShape", "Draw"), {"Zoo.Cube::Draw"})

    def test_callvirt_on_non_virtual_method(self):
        prog = program(
            cls("Greeter", method("Hello"), ctor()),
            cls("Program", method("Main", newobj("Zoo.Greeter"), callvirt("Zoo.Greeter", "Hello"),
                                  static=True)),
            entry=ref("Zoo.Program", "Main"),
        )
        result = self.analyze(prog)
        self.assertEqual(self.callees(result, "Zoo.Program::Main"),
                         {"Zoo.Greeter::.ctor", "Zoo.Greeter::Hello"})

    def test_candidates_are_deduplicated(self):
        prog = zoo(callvirt("Zoo.Animal", "Speak"), callvirt("Zoo.Animal", "Speak"))
        result = self.analyze(prog)
        self.assertEqual(result.callgraph.edge_count, 3)

    def test_no_refinement_waves(self):
        result = self.analyze(zoo(callvirt("Zoo.Animal", "Speak")), Algorithm.CHA)
        self.assertEqual(result.waves, 0)

    def test_static_call_reaches_base_constructor(self):
        prog = zoo(newobj("Zoo.Dog"))
        result = self.analyze(prog)
        self.assertIn(("Zoo.Dog::.ctor", "Zoo.Animal::.ctor"), self.edges(result))
        self.assertEqual(self.nodes(result),
                         {"Zoo.Program::Main", "Zoo.Dog::.ctor", "Zoo.Animal::.ctor"})

    def test_unresolved_static_call(self):
        prog = zoo(call("Zoo.Missing", "Run"), newobj("Zoo.Dog"))
        result = self.analyze(prog)
        self.assertEqual(result.errors.errorCount, 1)
        self.assertIn(("Zoo.Program::Main", "Zoo.Dog::.ctor"), self.edges(result))


class SignatureMatchingTest(CallGraphTestBase):
    def test_explicit_binding_falls_back_to_qualified_name(self):
        # Both modules define Zoo.IShape; the index keeps the first one, so
        # the binding resolves to a definition whose identity differs from
        # the second module's target.
        first = interface("IShape", method("Draw", abstract=True))
        second = interface("IShape", method("Draw", abstract=True))
        impl = method("Draw", virtual=True, overrides=[ref("Zoo.IShape", "Draw")])
        prog = Program([
            Module("A.dll", [first]),
            Module("B.dll", [second, cls("Square", impl, interfaces=["Zoo.IShape"])]),
        ])
        target = second.methods[0]
        self.assertNotEqual(prog.resolve_method(ref("Zoo.IShape", "Draw")).identity, target.identity)
        self.assertTrue(is_explicit_implementation(prog, impl, target))

    def test_value_type_return_is_not_covariant(self):
        prog = program(cls("Animal"), struct("Point"))
        # A value type never derives from a reference return type.
        point = prog.resolve_type("Zoo.Point")
        point.base_type = "Zoo.Animal"
        self.assertFalse(is_return_type_compatible(prog, "Zoo.Point", "Zoo.Animal"))
        self.assertTrue(is_return_type_compatible(prog, "Zoo.Point", "Zoo.Point"))
