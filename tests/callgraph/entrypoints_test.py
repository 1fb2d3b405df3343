from unittest import TestCase

from reachgraph.analysis.callgraph import EntryPointSelector, EntryPointStrategy, Worklist
from reachgraph.analysis.callgraph.entrypoints import namespace_matches
from reachgraph.language.model import Module, Program

from .base import cls, interface, method, program, ref, short


def library():
    return program(
        interface("IService", method("Start", abstract=True)),
        cls("Service",
            method("Start", virtual=True),
            method("Helper", visibility="private"),
            method("OnStop", visibility="protected"),
            method("Shared", visibility="protected internal"),
            method("Internal", visibility="internal"),
            method("get_Name", getter=True),
            method("set_Name", setter=True, params=["System.String"]),
            interfaces=["Zoo.IService"]),
        cls("Base", method("Run", abstract=True), abstract=True),
        cls("MarkerAttribute", method("Describe"), base="System.Attribute"),
        cls("DerivedAttribute", method("Describe"), base="Zoo.MarkerAttribute"),
        cls("Outer", method("Visit"),
            nested=[cls("Inner", method("Visit"), ns="")]),
        cls("Program", method("Main", static=True)),
        cls("Hidden", method("Touch"), ns="Zoo.Internal.Deep"),
        cls("Other", method("Touch"), ns="Zoological"),
        entry=ref("Zoo.Program", "Main"),
    )


class EntryPointSelectorTest(TestCase):
    def select(self, strategy, namespaces=(), prog=None):
        prog = prog if prog is not None else library()
        methods = EntryPointSelector(prog, strategy, namespaces).select()
        return [short(m.identity) for m in methods]

    def test_program_entry(self):
        self.assertEqual(self.select(EntryPointStrategy.PROGRAM_ENTRY), ["Zoo.Program::Main"])

    def test_program_entry_without_entry_point(self):
        prog = program(cls("Program", method("Main", static=True)))
        self.assertEqual(self.select(EntryPointStrategy.PROGRAM_ENTRY, prog=prog), [])

    def test_program_entry_unresolved(self):
        prog = program(cls("Program"), entry=ref("Zoo.Program", "Main"))
        self.assertEqual(self.select(EntryPointStrategy.PROGRAM_ENTRY, prog=prog), [])

    def test_program_entry_respects_namespaces(self):
        self.assertEqual(self.select(EntryPointStrategy.PROGRAM_ENTRY, ["Lib"]), [])

    def test_public_concrete(self):
        self.assertEqual(self.select(EntryPointStrategy.PUBLIC_CONCRETE), [
            "Zoo.Service::Start",
            "Zoo.Outer::Visit",
            "Zoo.Outer/Inner::Visit",
            "Zoo.Program::Main",
            "Zoo.Internal.Deep.Hidden::Touch",
            "Zoological.Other::Touch",
        ])

    def test_accessible_concrete(self):
        selected = self.select(EntryPointStrategy.ACCESSIBLE_CONCRETE)
        self.assertIn("Zoo.Service::OnStop", selected)
        self.assertIn("Zoo.Service::Shared", selected)
        self.assertNotIn("Zoo.Service::Internal", selected)
        self.assertNotIn("Zoo.Service::Helper", selected)

    def test_concrete(self):
        selected = self.select(EntryPointStrategy.CONCRETE)
        self.assertIn("Zoo.Service::Helper", selected)
        self.assertIn("Zoo.Service::Internal", selected)
        self.assertNotIn("Zoo.Base::Run", selected)
        self.assertNotIn("Zoo.Service::get_Name", selected)

    def test_all_includes_accessors_and_abstract_methods(self):
        selected = self.select(EntryPointStrategy.ALL)
        self.assertIn("Zoo.Service::get_Name", selected)
        self.assertIn("Zoo.Service::set_Name", selected)
        self.assertIn("Zoo.Base::Run", selected)

    def test_interfaces_and_attributes_are_skipped(self):
        selected = self.select(EntryPointStrategy.ALL)
        self.assertFalse([m for m in selected if m.startswith("Zoo.IService")])
        self.assertFalse([m for m in selected if "Attribute" in m])

    def test_namespace_filter(self):
        self.assertEqual(self.select(EntryPointStrategy.PUBLIC_CONCRETE, ["Zoo.Internal"]),
                         ["Zoo.Internal.Deep.Hidden::Touch"])

    def test_namespace_filter_is_dot_separated(self):
        selected = self.select(EntryPointStrategy.PUBLIC_CONCRETE, ["Zoo"])
        self.assertIn("Zoo.Internal.Deep.Hidden::Touch", selected)
        self.assertNotIn("Zoological.Other::Touch", selected)

    def test_nested_types_are_walked(self):
        self.assertIn("Zoo.Outer/Inner::Visit", self.select(EntryPointStrategy.CONCRETE))

    def test_modules_in_load_order(self):
        prog = Program([
            Module("B.dll", [cls("B", method("Main", static=True), ns="Two")],
                   ref("Two.B", "Main")),
            Module("A.dll", [cls("A", method("Main", static=True), ns="One")],
                   ref("One.A", "Main")),
        ])
        self.assertEqual(self.select(EntryPointStrategy.PROGRAM_ENTRY, prog=prog),
                         ["Two.B::Main", "One.A::Main"])

    def test_seed_enqueues_without_scanning(self):
        worklist = Worklist()
        count = EntryPointSelector(library(), EntryPointStrategy.CONCRETE).seed(worklist)
        self.assertEqual(count, len(worklist))
        self.assertEqual(worklist.visited, set())


class EntryPointStrategyTest(TestCase):
    def test_parse(self):
        self.assertIs(EntryPointStrategy.parse("public_concrete"), EntryPointStrategy.PUBLIC_CONCRETE)
        self.assertIs(EntryPointStrategy.parse("Accessible-Concrete"),
                      EntryPointStrategy.ACCESSIBLE_CONCRETE)

    def test_dotnet_main_alias(self):
        self.assertIs(EntryPointStrategy.parse("DOTNET_MAIN"), EntryPointStrategy.PROGRAM_ENTRY)

    def test_unknown_strategy(self):
        with self.assertRaises(ValueError):
            EntryPointStrategy.parse("everything")

    def test_namespace_matches(self):
        self.assertTrue(namespace_matches("Zoo", []))
        self.assertTrue(namespace_matches("Zoo", ["Zoo"]))
        self.assertTrue(namespace_matches("Zoo.Birds", ["Lib", "Zoo"]))
        self.assertFalse(namespace_matches("Zoological", ["Zoo"]))
        self.assertFalse(namespace_matches("", ["Zoo"]))
