from __future__ import annotations

from pathlib import Path
import io
import tempfile
import textwrap
import unittest

from minicmake.errors import ScriptNotFoundError
from minicmake.platforms import get_profile
from minicmake.session import Session, SessionOptions
from minicmake.targets import TargetKind


class SessionTestCase(unittest.TestCase):
    platform_name = "linux"

    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.temp_dir.name)
        self.output = io.StringIO()
        self.session = Session(
            SessionOptions(source_dir=self.root, platform=get_profile(self.platform_name)),
            output=self.output,
        )

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def run_script(self, script: str) -> Session:
        self.session.run_text(textwrap.dedent(script))
        return self.session

    def write(self, relative: str, content: str) -> Path:
        path = self.root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(content))
        return path


class AmbientDefaultsTests(SessionTestCase):
    def test_defaults_are_seeded(self) -> None:
        variables = self.session.variables
        self.assertEqual(variables.get("CMAKE_C_STANDARD"), "99")
        self.assertEqual(variables.get("CMAKE_C_COMPILER"), "gcc")
        self.assertEqual(variables.get("CMAKE_C_FLAGS"), "")
        self.assertEqual(variables.get("UNIX"), "ON")
        self.assertEqual(variables.get("WIN32"), "")
        self.assertEqual(variables.get("CMAKE_CURRENT_LIST_DIR"), str(self.root))

    def test_user_variables_override_defaults(self) -> None:
        session = Session(
            SessionOptions(
                source_dir=self.root,
                platform=get_profile("darwin"),
                compiler="clang",
                variables={"CMAKE_C_STANDARD": "11", "FEATURE": "ON"},
            )
        )
        self.assertEqual(session.variables.get("CMAKE_C_COMPILER"), "clang")
        self.assertEqual(session.variables.get("CMAKE_C_STANDARD"), "11")
        self.assertEqual(session.variables.get("FEATURE"), "ON")
        self.assertEqual(session.variables.get("APPLE"), "ON")


class VariableCommandTests(SessionTestCase):
    def test_set_joins_values(self) -> None:
        self.run_script(
            """
            set(SRCS main.c
                util.c)
            set(EMPTY)
            set(QUOTED "hello world")
            """
        )
        self.assertEqual(self.session.variables.get("SRCS"), "main.c util.c")
        self.assertEqual(self.session.variables.get("QUOTED"), "hello world")
        self.assertIn("EMPTY", self.session.variables)
        self.assertEqual(self.session.variables.get("EMPTY"), "")

    def test_variables_expand_in_later_commands(self) -> None:
        self.run_script(
            """
            set(SRCS main.c util.c)
            add_executable(app ${SRCS})
            """
        )
        self.assertEqual(self.session.targets.get("app").sources, ["main.c", "util.c"])

    def test_slash_flags_are_filtered_off_windows(self) -> None:
        self.run_script(
            """
            set(CMAKE_C_FLAGS "/W4 -Wall / -O2")
            add_compile_options(/MP -g)
            """
        )
        self.assertEqual(self.session.variables.get("CMAKE_C_FLAGS"), "-Wall / -O2 -g")

    def test_add_compile_options_appends(self) -> None:
        self.run_script(
            """
            set(CMAKE_C_FLAGS -O2)
            add_compile_options(-Wall -Wextra)
            """
        )
        self.assertEqual(self.session.variables.get("CMAKE_C_FLAGS"), "-O2 -Wall -Wextra")

    def test_project_sets_name(self) -> None:
        self.run_script("project(demo C)\n")
        self.assertEqual(self.session.variables.get("PROJECT_NAME"), "demo")

    def test_message_prints_text(self) -> None:
        self.run_script('project(x)\nmessage(STATUS "Building ${PROJECT_NAME}")\nmessage(hi there)\n')
        self.assertEqual(self.output.getvalue().splitlines(), ["Building x", "hi there"])


class WindowsFlagTests(SessionTestCase):
    platform_name = "windows"

    def test_slash_flags_are_kept_on_windows(self) -> None:
        self.run_script("set(CMAKE_C_FLAGS /W4 /MP)\n")
        self.assertEqual(self.session.variables.get("CMAKE_C_FLAGS"), "/W4 /MP")
        self.assertEqual(self.session.variables.get("WIN32"), "ON")


class ConditionalCommandTests(SessionTestCase):
    def test_nested_blocks_require_both_conditions(self) -> None:
        for a_value, b_value, expected in [
            ("ON", "ON", True),
            ("ON", "OFF", False),
            ("OFF", "ON", False),
            ("OFF", "OFF", False),
        ]:
            with self.subTest(a=a_value, b=b_value):
                session = Session(SessionOptions(source_dir=self.root, platform=get_profile("linux")))
                session.run_text(
                    f"set(A {a_value})\nset(B {b_value})\n"
                    "if(A)\n  if(B)\n    set(CMD ran)\n  endif()\nendif()\n"
                )
                self.assertEqual(session.variables.get("CMD") == "ran", expected)

    def test_else_branch_runs_when_condition_false(self) -> None:
        self.run_script(
            """
            if(WIN32)
              set(KIND windows)
            else()
              set(KIND posix)
            endif()
            """
        )
        self.assertEqual(self.session.variables.get("KIND"), "posix")
        self.assertEqual(self.session.conditions.depth, 0)

    def test_strequal_condition(self) -> None:
        self.run_script(
            """
            set(MODE release)
            if(MODE STREQUAL "release")
              set(OPT -O2)
            endif()
            if(MODE STREQUAL "debug")
              set(DBG -g)
            endif()
            """
        )
        self.assertEqual(self.session.variables.get("OPT"), "-O2")
        self.assertEqual(self.session.variables.get("DBG"), "")

    def test_elseif_selects_branch(self) -> None:
        self.run_script(
            """
            set(CC_ID clang)
            if(CC_ID STREQUAL "gcc")
              set(PICK gcc)
            elseif(CC_ID STREQUAL "clang")
              set(PICK clang)
            else()
              set(PICK other)
            endif()
            """
        )
        self.assertEqual(self.session.variables.get("PICK"), "clang")

    def test_inactive_block_skips_declarations(self) -> None:
        self.run_script(
            """
            if(NOT UNIX)
              add_executable(win_only main.c)
            endif()
            add_executable(app main.c)
            """
        )
        self.assertEqual([target.name for target in self.session.targets], ["app"])
        self.assertTrue(self.session.diagnostics.contains("inactive condition"))


class TargetCommandTests(SessionTestCase):
    def test_add_library_kinds(self) -> None:
        self.run_script(
            """
            add_library(core STATIC core.c extra.c)
            add_library(plugin SHARED plugin.c)
            add_library(odd MODULE odd.c)
            """
        )
        targets = self.session.targets
        self.assertIs(targets.get("core").kind, TargetKind.STATIC_LIBRARY)
        self.assertEqual(targets.get("core").sources, ["core.c", "extra.c"])
        self.assertIs(targets.get("plugin").kind, TargetKind.SHARED_LIBRARY)
        self.assertIs(targets.get("odd").kind, TargetKind.EXECUTABLE)
        self.assertEqual(targets.get("odd").sources, ["odd.c"])

    def test_add_definitions_is_not_retroactive(self) -> None:
        self.run_script(
            """
            add_executable(t1 a.c)
            add_definitions(-DFOO -DIGNORED)
            add_executable(t2 b.c)
            """
        )
        self.assertEqual(self.session.targets.get("t1").defines, ["-DFOO"])
        self.assertEqual(self.session.targets.get("t2").defines, [])

    def test_quoted_definition_values_are_kept_whole(self) -> None:
        self.run_script(
            """
            add_executable(app main.c)
            add_definitions(-DVERSION="1.0")
            add_compile_options(-DNAME="x" -Wall)
            """
        )
        self.assertEqual(self.session.targets.get("app").defines, ['-DVERSION="1.0"'])
        self.assertEqual(self.session.variables.get("CMAKE_C_FLAGS"), '-DNAME="x" -Wall')

    def test_include_directories(self) -> None:
        self.run_script(
            """
            include_directories(include third_party)
            add_executable(app main.c)
            target_include_directories(app PRIVATE src/private)
            target_include_directories(ghost PUBLIC nowhere)
            target_include_directories(app)
            """
        )
        self.assertEqual(self.session.global_includes, ["include", "third_party"])
        self.assertEqual(self.session.targets.get("app").includes, ["src/private"])

    def test_link_propagates_from_earlier_declarations(self) -> None:
        self.run_script(
            """
            add_library(core STATIC core.c)
            target_include_directories(core PUBLIC core/include)
            add_definitions(-DCORE_API)
            add_executable(app app.c)
            target_link_libraries(app core m)
            target_link_libraries(app later)
            add_library(later STATIC later.c)
            target_include_directories(later PUBLIC later/include)
            """
        )
        app = self.session.targets.get("app")
        self.assertEqual(app.links, ["core", "m", "later"])
        self.assertEqual(app.includes, ["core/include"])
        self.assertEqual(app.defines, ["-DCORE_API"])

    def test_duplicate_declaration_is_skipped(self) -> None:
        self.run_script(
            """
            add_executable(app main.c)
            add_executable(app other.c)
            """
        )
        self.assertEqual(self.session.targets.get("app").sources, ["main.c"])
        self.assertTrue(self.session.diagnostics.contains("already declared"))

    def test_unknown_and_skipped_commands_are_ignored(self) -> None:
        self.run_script(
            """
            cmake_minimum_required(VERSION 3.10)
            find_package(Threads REQUIRED)
            set_target_properties(app PROPERTIES C_STANDARD 11)
            function(helper)
            add_executable(app main.c)
            """
        )
        self.assertEqual(len(self.session.targets), 1)
        self.assertTrue(self.session.diagnostics.contains("Skipping find_package"))
        self.assertTrue(self.session.diagnostics.contains("Unknown or skipped command"))


class NestedScriptTests(SessionTestCase):
    def test_include_runs_nested_file(self) -> None:
        self.write("cmake/options.cmake", "set(FROM_INCLUDE yes)\nadd_library(util STATIC util.c)\n")
        self.run_script(
            """
            include(cmake/options.cmake)
            add_executable(app main.c)
            target_link_libraries(app util)
            """
        )
        self.assertEqual(self.session.variables.get("FROM_INCLUDE"), "yes")
        self.assertEqual(self.session.targets.get("app").links, ["util"])

    def test_add_subdirectory_reads_lists_file(self) -> None:
        self.write("lib/CMakeLists.txt", "add_library(lib SHARED lib/lib.c)\n")
        self.run_script("add_subdirectory(lib)\n")
        self.assertIs(self.session.targets.get("lib").kind, TargetKind.SHARED_LIBRARY)

    def test_missing_nested_file_is_skipped(self) -> None:
        self.run_script(
            """
            include(missing.cmake)
            add_subdirectory(nowhere)
            add_executable(app main.c)
            """
        )
        self.assertIn("app", self.session.targets)
        self.assertTrue(self.session.diagnostics.contains("include failed"))

    def test_unopenable_include_path_is_skipped(self) -> None:
        self.run_script("include(a\x00b)\nadd_executable(app main.c)\n")
        self.assertIn("app", self.session.targets)
        self.assertTrue(self.session.diagnostics.contains("include failed"))

    def test_self_inclusion_does_not_recurse(self) -> None:
        self.write("loop.cmake", "include(loop.cmake)\nadd_library(once STATIC once.c)\n")
        self.run_script("include(loop.cmake)\n")
        self.assertEqual([target.name for target in self.session.targets], ["once"])

    def test_glob_recurse_collects_sources(self) -> None:
        self.write("src/main.c", "")
        self.write("src/nested/util.c", "")
        self.write("src/notes.txt", "")
        self.run_script(
            """
            file(GLOB_RECURSE SOURCES src/*.c)
            file(GLOB_RECURSE EVERYTHING src/*)
            file(GLOB_RECURSE RAW "src/*.c other/*.c")
            add_executable(app ${SOURCES})
            """
        )
        self.assertEqual(self.session.variables.get("SOURCES"), "src/main.c src/nested/util.c")
        self.assertEqual(
            self.session.variables.get("EVERYTHING"),
            "src/main.c src/nested/util.c src/notes.txt",
        )
        self.assertEqual(self.session.variables.get("RAW"), "src/*.c other/*.c")
        self.assertEqual(self.session.targets.get("app").sources, ["src/main.c", "src/nested/util.c"])


class RootScriptTests(SessionTestCase):
    def test_missing_root_script_raises(self) -> None:
        with self.assertRaises(ScriptNotFoundError):
            self.session.run()

    def test_run_reads_root_script(self) -> None:
        self.write("CMakeLists.txt", "project(demo)\nadd_executable(app main.c)\n")
        self.session.run()
        self.assertEqual(self.session.variables.get("PROJECT_NAME"), "demo")
        self.assertIn("app", self.session.targets)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
