def main() -> None:
    """パッケージエントリポイント。cli.main() に委譲する。

    pyproject.toml の [project.scripts] は harnessconf.cli:main を直接参照するため、
    この関数はスクリプトエントリポイントとしては呼ばれない。
    プログラムから harnessconf.main() として呼び出す場合の互換用。
    """
    from harnessconf.cli import main as cli_main

    cli_main()
