"""Integration tests for branch and checkout commands."""

from pathlib import Path

from strata.cli.main import cli
from strata.core.repository import Repository


def commit(runner, path, content, message):
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    Path(path).write_text(content)
    runner.invoke(cli, ['add', path])
    result = runner.invoke(cli, ['commit', '-m', message])
    assert result.exit_code == 0, result.output


class TestBranch:
    """Creating, listing and deleting branches."""

    def test_create_and_list(self, runner, workspace):
        commit(runner, 'a.txt', 'a', 'first')

        result = runner.invoke(cli, ['branch', 'feature'])
        assert result.exit_code == 0
        assert "Created branch feature" in result.output

        result = runner.invoke(cli, ['branch'])
        assert "* main" in result.output
        assert "  feature" in result.output

    def test_create_at_start_point(self, runner, workspace):
        commit(runner, 'a.txt', '1', 'first')
        first = Repository.open().refs.resolve_head()
        commit(runner, 'a.txt', '2', 'second')

        result = runner.invoke(cli, ['branch', 'old', first[:10]])
        assert result.exit_code == 0
        assert Repository.open().refs.get_ref('old') == first

    def test_create_duplicate(self, runner, workspace):
        commit(runner, 'a.txt', 'a', 'first')
        runner.invoke(cli, ['branch', 'feature'])
        result = runner.invoke(cli, ['branch', 'feature'])
        assert result.exit_code != 0
        assert "already exists" in result.output

    def test_create_on_unborn_head(self, runner, workspace):
        result = runner.invoke(cli, ['branch', 'feature'])
        assert result.exit_code != 0

    def test_invalid_name(self, runner, workspace):
        commit(runner, 'a.txt', 'a', 'first')
        result = runner.invoke(cli, ['branch', 'bad..name'])
        assert result.exit_code != 0
        assert "Invalid reference name" in result.output

    def test_delete(self, runner, workspace):
        commit(runner, 'a.txt', 'a', 'first')
        runner.invoke(cli, ['branch', 'feature'])

        result = runner.invoke(cli, ['branch', '-d', 'feature'])
        assert result.exit_code == 0
        assert Repository.open().refs.list_branches() == {'main'}

    def test_delete_unmerged_requires_force(self, runner, workspace):
        commit(runner, 'a.txt', 'a', 'first')
        runner.invoke(cli, ['branch', 'spike'])
        runner.invoke(cli, ['checkout', 'spike'])
        commit(runner, 'b.txt', 'b', 'spike work')
        runner.invoke(cli, ['checkout', 'main'])

        result = runner.invoke(cli, ['branch', '-d', 'spike'])
        assert result.exit_code != 0
        assert "not fully merged" in result.output
        assert 'spike' in Repository.open().refs.list_branches()

        result = runner.invoke(cli, ['branch', '-d', '--force', 'spike'])
        assert result.exit_code == 0
        assert "Deleted branch spike" in result.output
        assert Repository.open().refs.list_branches() == {'main'}

    def test_delete_current_branch(self, runner, workspace):
        commit(runner, 'a.txt', 'a', 'first')
        result = runner.invoke(cli, ['branch', '-d', 'main'])
        assert result.exit_code != 0
        assert "checked-out branch" in result.output


class TestCheckout:
    """Switching branches and detaching HEAD."""

    def test_switch_branches(self, runner, workspace):
        commit(runner, 'a.txt', 'main version', 'first')
        runner.invoke(cli, ['branch', 'feature'])

        result = runner.invoke(cli, ['checkout', 'feature'])
        assert result.exit_code == 0
        assert "Switched to branch 'feature'" in result.output

        commit(runner, 'a.txt', 'feature version', 'on feature')
        commit(runner, 'lib/new.txt', 'new', 'add lib')

        result = runner.invoke(cli, ['checkout', 'main'])
        assert result.exit_code == 0
        assert Path('a.txt').read_text() == 'main version'
        assert not Path('lib').exists()

        runner.invoke(cli, ['checkout', 'feature'])
        assert Path('a.txt').read_text() == 'feature version'
        assert Path('lib/new.txt').read_text() == 'new'

        result = runner.invoke(cli, ['status'])
        assert "working tree clean" in result.output

    def test_create_and_switch(self, runner, workspace):
        commit(runner, 'a.txt', 'a', 'first')
        result = runner.invoke(cli, ['checkout', '-b', 'topic'])
        assert result.exit_code == 0
        assert Repository.open().refs.current_branch() == 'topic'

    def test_create_and_switch_unborn(self, runner, workspace):
        result = runner.invoke(cli, ['checkout', '-b', 'fresh'])
        assert result.exit_code == 0
        assert "Switched to a new branch 'fresh'" in result.output
        assert Repository.open().refs.current_branch() == 'fresh'

    def test_detached(self, runner, workspace):
        commit(runner, 'a.txt', '1', 'first')
        first = Repository.open().refs.resolve_head()
        commit(runner, 'a.txt', '2', 'second')

        result = runner.invoke(cli, ['checkout', first])
        assert result.exit_code == 0
        assert "detached HEAD" in result.output
        assert Path('a.txt').read_text() == '1'

        result = runner.invoke(cli, ['status'])
        assert "HEAD detached at" in result.output

    def test_local_changes_block_checkout(self, runner, workspace):
        commit(runner, 'a.txt', 'main', 'first')
        runner.invoke(cli, ['checkout', '-b', 'feature'])
        commit(runner, 'a.txt', 'feature', 'changed')

        Path('a.txt').write_text('uncommitted')
        result = runner.invoke(cli, ['checkout', 'main'])
        assert result.exit_code != 0
        assert "would be overwritten" in result.output
        assert "a.txt" in result.output
        assert Path('a.txt').read_text() == 'uncommitted'
        assert Repository.open().refs.current_branch() == 'feature'

    def test_unknown_target(self, runner, workspace):
        commit(runner, 'a.txt', 'a', 'first')
        result = runner.invoke(cli, ['checkout', 'nowhere'])
        assert result.exit_code != 0
        assert "Reference not found" in result.output


def test_log_all_parents_shows_decorations(runner, workspace):
    commit(runner, 'a.txt', 'a', 'first')
    runner.invoke(cli, ['branch', 'feature'])

    result = runner.invoke(cli, ['log', '--oneline', '--all-parents'])
    assert result.exit_code == 0
    assert "(feature, main)" in result.output
