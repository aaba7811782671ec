"""
Binder module behavioral tests (one call against a Specification).

Scope
- Validate token order, optional/required operand allocation and rendering
  of every supplied and defaulted value.
- Validate name resolution: unknown names, aliases and conflicting aliases.
- Validate required options, explicit nil, constraints and the grouping of
  several violations into one BindingExit.
- Validate option-like operand detection around '--' boundaries.
- Validate the Bound result: accessors, flag predicates, execution options
  and immutability, including isolation from the caller's containers.
- Validate that one Specification binds concurrently without shared state.

Conventions
- Test method names follow CamelCase per project convention.
- Specifications are declared with define() at module level, the way
  commands declare them.
"""
import unittest
from concurrent.futures import ThreadPoolExecutor
from unittest import TestCase

from argbind import (
    BindingExit,
    ConflictingAliasError,
    ConflictingArgumentsError,
    ExplicitNilError,
    InvalidChoiceError,
    MissingOptionError,
    MissingOperandError,
    MissingSelectionError,
    OptionLikeOperandError,
    UnknownArgumentError,
    define,
)


@define
def copy_branch(arguments):
    (arguments
        .literal("branch")
        .literal("--copy")
        .flag_option("force", "f")
        .operand("old_branch")
        .operand("new_branch", required=True))


@define
def list_branches(arguments):
    (arguments
        .literal("branch")
        .literal("--list")
        .value_option("format", inline=True, default="%(refname)")
        .flag_option("all", as_="-a")
        .value_option("sort", inline=True, repeatable=True)
        .value_option("contains")
        .flag_option("full", negatable=True)
        .execution_option("timeout")
        .operand("patterns", repeatable=True))


@define
def move(arguments):
    (arguments
        .literal("mv")
        .flag_option("force", "f")
        .operand("source", repeatable=True, required=True, separator="--")
        .operand("destination", required=True))


@define
def add(arguments):
    (arguments
        .literal("add")
        .operand("paths", repeatable=True, separator="--"))


class TestTokens(TestCase):

    def testOptionalOperandSkipped(self):
        self.assertEqual(copy_branch.bind("new-name").tokens, ("branch", "--copy", "new-name"))

    def testOptionalOperandFilled(self):
        self.assertEqual(
            copy_branch.bind("old-name", "new-name", force=True).tokens,
            ("branch", "--copy", "--force", "old-name", "new-name")
        )

    def testAliasRendersCanonicalSpelling(self):
        self.assertEqual(copy_branch.bind("new-name", f=True).tokens, ("branch", "--copy", "--force", "new-name"))

    def testMissingRequiredOperand(self):
        with self.assertRaises(MissingOperandError):
            copy_branch.bind()

    def testDeclarationOrderWins(self):
        bound = list_branches.bind(contains="abc123", all=True, sort=["refname"])
        self.assertEqual(
            bound.tokens,
            ("branch", "--list", "--format=%(refname)", "-a", "--sort=refname", "--contains", "abc123")
        )

    def testRepeatableInline(self):
        bound = list_branches.bind(sort=["refname", "-date"])
        self.assertIn("--sort=refname", bound.tokens)
        self.assertIn("--sort=-date", bound.tokens)

    def testDefaultRendered(self):
        self.assertEqual(list_branches.bind().tokens, ("branch", "--list", "--format=%(refname)"))

    def testDefaultOverridden(self):
        self.assertIn("--format=%(objectname)", list_branches.bind(format="%(objectname)").tokens)

    def testNilIsNoOp(self):
        self.assertEqual(list_branches.bind(contains=None, format=None).tokens, ("branch", "--list"))

    def testNegatableFlagOnlyWhenSupplied(self):
        self.assertNotIn("--no-full", list_branches.bind().tokens)
        self.assertIn("--no-full", list_branches.bind(full=False).tokens)
        self.assertIn("--full", list_branches.bind(full=True).tokens)

    def testExecutionOptionNotRendered(self):
        bound = list_branches.bind(timeout=5)
        self.assertNotIn("5", bound.tokens)
        self.assertEqual(dict(bound.execution_options), {"timeout": 5})

    def testRepeatableBeforeRequired(self):
        self.assertEqual(move.bind("a", "b", "dir").tokens, ("mv", "--", "a", "b", "dir"))

    def testEmptyRepeatableOmitsSeparator(self):
        self.assertEqual(add.bind().tokens, ("add",))
        self.assertEqual(add.bind("a.txt").tokens, ("add", "--", "a.txt"))

    def testListPositionalFlattened(self):
        self.assertEqual(add.bind(["a.txt", "b.txt"]).tokens, ("add", "--", "a.txt", "b.txt"))


class TestNames(TestCase):

    def testUnknownNames(self):
        with self.assertRaises(UnknownArgumentError) as context:
            copy_branch.bind("new-name", foo=1, bar=2)
        self.assertEqual(str(context.exception), "unsupported options: 'foo', 'bar'")

    def testOperandNameIsNotAnOption(self):
        with self.assertRaises(UnknownArgumentError):
            copy_branch.bind(new_branch="new-name")

    def testConflictingAliases(self):
        with self.assertRaises(ConflictingAliasError) as context:
            copy_branch.bind("new-name", force=True, f=True)
        self.assertEqual(str(context.exception), "conflicting aliases: 'force', 'f' refer to the same option")


class TestRequiredOptions(TestCase):

    def setUp(self):
        self.specification = define(lambda arguments: arguments
            .literal("commit")
            .value_option("message", "m", required=True)
            .value_option("author", required=True, allow_nil=False))

    def testMissing(self):
        with self.assertRaises(MissingOptionError) as context:
            self.specification.bind(author="A")
        self.assertEqual(str(context.exception), "required options not provided: 'message'")

    def testAliasSatisfies(self):
        self.assertEqual(
            self.specification.bind(m="wip", author="A").tokens,
            ("commit", "--message", "wip", "--author", "A")
        )

    def testExplicitNilAllowed(self):
        self.assertEqual(self.specification.bind(message=None, author="A").tokens, ("commit", "--author", "A"))

    def testExplicitNilRejected(self):
        with self.assertRaises(ExplicitNilError) as context:
            self.specification.bind(message="wip", author=None)
        self.assertEqual(str(context.exception), "required option 'author' cannot be nil")


class TestConstraints(TestCase):

    def setUp(self):
        self.specification = define(lambda arguments: arguments
            .literal("log")
            .flag_option("patch", "p")
            .flag_option("stat")
            .flag_option("oneline")
            .flag_option("graph")
            .conflicts("patch", "stat")
            .conflicts("oneline", "graph"))

    def testConflict(self):
        with self.assertRaises(ConflictingArgumentsError) as context:
            self.specification.bind(patch=True, stat=True)
        self.assertEqual(str(context.exception), "cannot specify 'patch' and 'stat' together")

    def testConflictThroughAlias(self):
        with self.assertRaises(ConflictingArgumentsError):
            self.specification.bind(stat=True, p=True)

    def testFalseIsAbsent(self):
        self.assertEqual(self.specification.bind(patch=True, stat=False).tokens, ("log", "--patch"))

    def testSeveralViolationsGrouped(self):
        with self.assertRaises(BindingExit) as context:
            self.specification.bind(patch=True, stat=True, oneline=True, graph=True)
        self.assertEqual(len(context.exception.exceptions), 2)
        self.assertTrue(all(
            isinstance(fault, ConflictingArgumentsError) for fault in context.exception.exceptions
        ))

    def testSelectionNamesEveryChoice(self):
        specification = define(lambda arguments: arguments
            .literal("stash")
            .value_option("message")
            .flag_option("patch")
            .requires_one_of("message", "patch"))
        with self.assertRaises(MissingSelectionError) as context:
            specification.bind()
        self.assertIn("'message'", str(context.exception))
        self.assertIn("'patch'", str(context.exception))

    def testDefaultDoesNotSatisfySelection(self):
        specification = define(lambda arguments: arguments
            .value_option("format", default="short")
            .flag_option("patch")
            .requires_one_of("format", "patch"))
        with self.assertRaises(MissingSelectionError):
            specification.bind()


class TestOptionLikeOperands(TestCase):

    def testSingleOperand(self):
        specification = define(lambda arguments: arguments
            .literal("diff")
            .operand("commit1")
            .operand("commit2"))
        with self.assertRaises(OptionLikeOperandError) as context:
            specification.bind("-s")
        self.assertEqual(str(context.exception), "operand 'commit1' value '-s' looks like a command-line option")

    def testRepeatableOperand(self):
        specification = define(lambda arguments: arguments
            .literal("show-ref")
            .operand("refs", repeatable=True))
        with self.assertRaises(OptionLikeOperandError) as context:
            specification.bind("main", "-a", "-b")
        self.assertEqual(str(context.exception), "operand 'refs' contains option-like values: '-a', '-b'")

    def testAfterLiteralSeparator(self):
        specification = define(lambda arguments: arguments
            .literal("checkout")
            .literal("--")
            .operand("paths", repeatable=True))
        self.assertEqual(specification.bind("-weird").tokens, ("checkout", "--", "-weird"))

    def testAfterOperandSeparator(self):
        self.assertEqual(add.bind("-weird").tokens, ("add", "--", "-weird"))

    def testBeforeRenderedSeparator(self):
        specification = define(lambda arguments: arguments
            .literal("reset")
            .operand("commit")
            .operand("paths", repeatable=True, separator="--"))
        with self.assertRaises(OptionLikeOperandError):
            specification.bind("-x", "a.txt")

    def testValueOptionRenderedAsOperands(self):
        specification = define(lambda arguments: arguments
            .literal("stash")
            .operand("commit")
            .value_option("pathspecs", as_operand=True, separator="--", repeatable=True))
        self.assertEqual(specification.bind(pathspecs=["-f"]).tokens, ("stash", "--", "-f"))

    def testNonStringValuesIgnored(self):
        specification = define(lambda arguments: arguments.literal("log").operand("count"))
        self.assertEqual(specification.bind(-1).tokens, ("log", "-1"))


class TestBound(TestCase):

    def setUp(self):
        self.bound = copy_branch.bind("old-name", "new-name", f=True)

    def testIteratesTokens(self):
        self.assertEqual(["git", *self.bound], ["git", "branch", "--copy", "--force", "old-name", "new-name"])
        self.assertEqual(len(self.bound), 5)

    def testAttributeAccess(self):
        self.assertTrue(self.bound.force)
        self.assertEqual(self.bound.old_branch, "old-name")

    def testItemAccessResolvesAliases(self):
        self.assertTrue(self.bound["f"])
        self.assertEqual(self.bound["new_branch"], "new-name")

    def testGet(self):
        self.assertEqual(self.bound.get("new_branch"), "new-name")
        self.assertEqual(self.bound.get("nope", "fallback"), "fallback")

    def testUnknownName(self):
        with self.assertRaises(KeyError):
            self.bound["nope"]
        with self.assertRaises(AttributeError):
            self.bound.nope

    def testFlagPredicate(self):
        self.assertIs(self.bound.is_force, True)
        self.assertIs(copy_branch.bind("new-name").is_force, False)

    def testUnsuppliedFlagReadsFalse(self):
        self.assertIs(copy_branch.bind("new-name").force, False)
        self.assertIs(list_branches.bind().full, False)

    def testUnsuppliedValueReadsDefault(self):
        bound = list_branches.bind()
        self.assertEqual(bound.format, "%(refname)")
        self.assertIsNone(bound.contains)

    def testRepeatableValuesReadOnly(self):
        self.assertEqual(list_branches.bind(sort=["refname"]).sort, ("refname",))

    def testValuesMapping(self):
        self.assertEqual(
            dict(self.bound.values),
            {"force": True, "old_branch": "old-name", "new_branch": "new-name"}
        )

    def testNoExecutionOptions(self):
        self.assertEqual(dict(self.bound.execution_options), {})
        self.assertEqual(dict(list_branches.bind().execution_options), {})

    def testImmutable(self):
        with self.assertRaises(AttributeError):
            self.bound.force = False
        with self.assertRaises(TypeError):
            self.bound.values["force"] = False

    def testEquality(self):
        self.assertEqual(self.bound, copy_branch.bind("old-name", "new-name", force=True))

    def testRepr(self):
        self.assertTrue(repr(self.bound).startswith("bound("))

    def testCallerMutationDoesNotLeak(self):
        sort = ["refname"]
        bound = list_branches.bind(sort=sort)
        sort.append("-date")
        self.assertEqual(bound.sort, ("refname",))
        self.assertEqual(bound["sort"], ("refname",))
        self.assertIn("--sort=refname", bound.tokens)
        self.assertNotIn("--sort=-date", bound.tokens)

    def testExecutionOptionsIsolated(self):
        specification = define(lambda arguments: arguments.literal("status").execution_option("env"))
        env = {"GIT_DIR": "/srv/repo"}
        bound = specification.bind(env=env)
        env["GIT_WORK_TREE"] = "/srv"
        self.assertEqual(dict(bound.execution_options["env"]), {"GIT_DIR": "/srv/repo"})
        with self.assertRaises(TypeError):
            bound.execution_options["env"]["GIT_DIR"] = "/tmp"

    def testRepeatableReadsTuple(self):
        self.assertEqual(add.bind().paths, ())
        self.assertEqual(add.bind("a.txt", "b.txt").paths, ("a.txt", "b.txt"))
        self.assertEqual(list_branches.bind().patterns, ())


class TestBareAndFalseValues(TestCase):

    def setUp(self):
        self.specification = define(lambda arguments: arguments
            .literal("log")
            .flag_or_value_option("decorate", negatable=True, inline=True, allowed_values=["short", "full"])
            .value_option("author")
            .value_option("committer")
            .conflicts("author", "committer"))

    def testBareFlagSkipsAllowedValues(self):
        self.assertEqual(self.specification.bind(decorate=True).tokens, ("log", "--decorate"))
        self.assertEqual(self.specification.bind(decorate=False).tokens, ("log", "--no-decorate"))

    def testChoiceStillChecked(self):
        self.assertEqual(self.specification.bind(decorate="short").tokens, ("log", "--decorate=short"))
        with self.assertRaises(InvalidChoiceError):
            self.specification.bind(decorate="long")

    def testFalseValueRendersNothing(self):
        self.assertEqual(self.specification.bind(author=False).tokens, ("log",))

    def testFalseValueIsAbsentForConflicts(self):
        self.assertEqual(
            self.specification.bind(author=False, committer="A").tokens,
            ("log", "--committer", "A")
        )


class TestConcurrency(TestCase):

    def testSharedSpecificationBindsIndependently(self):
        def work(index):
            bound = list_branches.bind("pattern-%d" % index, sort=["key-%d" % index], all=index % 2 == 0)
            return index, bound

        with ThreadPoolExecutor(max_workers=8) as executor:
            results = list(executor.map(work, range(64)))

        for index, bound in results:
            self.assertEqual(bound.patterns, ("pattern-%d" % index,))
            self.assertEqual(bound.sort, ("key-%d" % index,))
            self.assertIs(bound.is_all, index % 2 == 0)
            self.assertEqual(bound.tokens[-1], "pattern-%d" % index)

    def testBindsShareNoState(self):
        first = list_branches.bind(sort=["refname"])
        second = list_branches.bind()
        self.assertIsNone(second.sort)
        self.assertEqual(first.sort, ("refname",))
        self.assertNotIn("--sort=refname", second.tokens)


if __name__ == "__main__":
    unittest.main()
