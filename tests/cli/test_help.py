def test_help_in_root(invoke):
    result = invoke(['--help'])

    assert result.exit_code == 0
    assert 'Usage: reflector [OPTIONS]' in result.output
    assert '  reconcile ' in result.output
    assert '  resync ' in result.output
    assert '  annotate ' in result.output


def test_help_in_subcommand(invoke, real_run):
    result = invoke(['reconcile', '--help'])

    assert result.exit_code == 0
    assert not real_run.called

    # Enough to be sure this is not a root command help.
    assert 'Usage: reflector reconcile [OPTIONS]' in result.output
    assert '  --prefix' in result.output
    assert '  --timeout' in result.output
    assert '  -v, --verbose' in result.output


def test_version(invoke):
    result = invoke(['--version'])

    assert result.exit_code == 0
    assert result.output.startswith('reflector, version ')
