"""Unit tests for MSBuild project evaluation."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from gitlink.discovery import discover_projects, evaluate_condition, load_project
from gitlink.discovery.msbuild import ProjectLoadError

LEGACY_PROJECT = """<?xml version="1.0" encoding="utf-8"?>
<Project ToolsVersion="12.0" DefaultTargets="Build" xmlns="http://schemas.microsoft.com/developer/msbuild/2003">
  <PropertyGroup>
    <Configuration Condition=" '$(Configuration)' == '' ">Debug</Configuration>
    <Platform Condition=" '$(Platform)' == '' ">AnyCPU</Platform>
    <AssemblyName>Catel.Core</AssemblyName>
  </PropertyGroup>
  <PropertyGroup Condition=" '$(Configuration)|$(Platform)' == 'Debug|AnyCPU' ">
    <OutputPath>..\\output\\Debug\\</OutputPath>
  </PropertyGroup>
  <PropertyGroup Condition=" '$(Configuration)|$(Platform)' == 'Release|AnyCPU' ">
    <OutputPath>..\\output\\Release\\</OutputPath>
  </PropertyGroup>
  <ItemGroup>
    <Compile Include="Properties\\AssemblyInfo.cs" />
    <Compile Include="Core\\**\\*.cs" Exclude="Core\\Generated\\*.cs" />
    <Compile Include="Debug.cs" Condition=" '$(Configuration)' == 'Debug' " />
    <None Include="readme.txt" />
  </ItemGroup>
</Project>
"""

SDK_PROJECT = """<Project Sdk="Microsoft.NET.Sdk">
  <PropertyGroup>
    <TargetFramework>net8.0</TargetFramework>
  </PropertyGroup>
  <ItemGroup>
    <Compile Remove="Legacy\\**" />
  </ItemGroup>
</Project>
"""


def write(path: Path, text: str = "") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_legacy_project_uses_matching_output_path_and_explicit_items(tmp_path: Path) -> None:
    root = tmp_path / "src" / "Catel.Core"
    project_file = write(root / "Catel.Core.csproj", LEGACY_PROJECT)
    write(root / "Properties" / "AssemblyInfo.cs")
    write(root / "Core" / "Engine.cs")
    write(root / "Core" / "Deep" / "Parser.cs")
    write(root / "Core" / "Generated" / "Auto.cs")
    write(root / "Debug.cs")

    project = load_project(project_file, configuration="Release", platform="AnyCPU")

    resolved_root = root.resolve()
    assert project.name == "Catel.Core"
    assert project.pdb_file == (tmp_path / "src" / "output" / "Release" / "Catel.Core.pdb").resolve()
    assert set(project.compiled_files) == {
        resolved_root / "Properties" / "AssemblyInfo.cs",
        resolved_root / "Core" / "Engine.cs",
        resolved_root / "Core" / "Deep" / "Parser.cs",
    }
    assert project.compiled_files[0] == resolved_root / "Properties" / "AssemblyInfo.cs"


def test_evaluated_properties_are_logged_at_debug(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    project_file = write(tmp_path / "Catel.Core" / "Catel.Core.csproj", LEGACY_PROJECT)
    caplog.set_level(logging.DEBUG, logger="gitlink.discovery.msbuild")

    load_project(project_file, configuration="Release", platform="AnyCPU")

    messages = [record.getMessage() for record in caplog.records]
    assert "Evaluated properties of Catel.Core.csproj:" in messages
    assert "  AssemblyName = Catel.Core" in messages
    assert "  Configuration = Release" in messages
    assert "  OutputPath = ..\\output\\Release\\" in messages


def test_debug_configuration_selects_debug_group(tmp_path: Path) -> None:
    root = tmp_path / "Catel.Core"
    project_file = write(root / "Catel.Core.csproj", LEGACY_PROJECT)
    write(root / "Debug.cs")

    project = load_project(project_file, configuration="Debug", platform="AnyCPU")

    assert project.pdb_file == (tmp_path / "output" / "Debug" / "Catel.Core.pdb").resolve()
    assert (root / "Debug.cs").resolve() in project.compiled_files


def test_sdk_project_globs_sources_and_appends_target_framework(tmp_path: Path) -> None:
    root = tmp_path / "App"
    project_file = write(root / "App.csproj", SDK_PROJECT)
    write(root / "Program.cs")
    write(root / "Models" / "User.cs")
    write(root / "Legacy" / "Old.cs")
    write(root / "obj" / "Release" / "net8.0" / "AssemblyAttributes.cs")
    write(root / "bin" / "Release" / "Generated.cs")

    project = load_project(project_file, configuration="Release", platform="AnyCPU")

    resolved_root = root.resolve()
    assert set(project.compiled_files) == {
        resolved_root / "Program.cs",
        resolved_root / "Models" / "User.cs",
    }
    assert project.pdb_file == resolved_root / "bin" / "Release" / "net8.0" / "App.pdb"


@pytest.mark.parametrize(
    ("condition", "expected"),
    [
        (None, True),
        (" '$(Configuration)|$(Platform)' == 'Release|AnyCPU' ", True),
        (" '$(Configuration)|$(Platform)' == 'release|anycpu' ", True),
        (" '$(Configuration)' != 'Release' ", False),
        ("Exists('packages.config')", False),
    ],
)
def test_evaluate_condition(condition: str | None, expected: bool) -> None:
    properties = {"Configuration": "Release", "Platform": "AnyCPU"}
    assert evaluate_condition(condition, properties) is expected


def test_missing_or_malformed_project_raises(tmp_path: Path) -> None:
    with pytest.raises(ProjectLoadError, match="does not exist"):
        load_project(tmp_path / "Missing.csproj")
    broken = write(tmp_path / "Broken.csproj", "<Project>")
    with pytest.raises(ProjectLoadError, match="not valid XML"):
        load_project(broken)


def test_discover_projects_dedupes_across_solutions(tmp_path: Path) -> None:
    write(tmp_path / "App" / "App.csproj", SDK_PROJECT)
    line = (
        'Project("{FAE04EC0-301F-11D3-BF4B-00C04F79EFBC}") = "App", "App\\App.csproj", '
        '"{11111111-1111-1111-1111-111111111111}"\nEndProject\n'
    )
    first = write(tmp_path / "One.sln", line)
    second = write(tmp_path / "Two.sln", line)

    projects = discover_projects([first, second], configuration="Release", platform="AnyCPU")

    assert [project.name for project in projects] == ["App"]
