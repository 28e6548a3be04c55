"""
输出门面单元测试
"""

from swcpack.utils.logging import LogStage, OutputFacade, OutputLevel


class TestOutputFacade:

    def test_level_filtering(self):
        facade = OutputFacade()
        assert not facade.enabled_for(OutputLevel.DEBUG)
        assert facade.enabled_for(OutputLevel.SUCCESS)

        facade.set_level(OutputLevel.ERROR)
        assert not facade.enabled_for(OutputLevel.WARNING)
        assert facade.enabled_for(OutputLevel.ERROR)

        facade.set_level("NOPE")
        assert facade.level == OutputLevel.ERROR

    def test_log_file_receives_plain_lines(self, tmp_path, capsys):
        log_path = tmp_path / "logs" / "build.log"
        facade = OutputFacade()
        facade.set_log_file(log_path)

        facade.emit(OutputLevel.INFO, "打包 [library.swf]", LogStage.EXPORT)
        facade.emit(OutputLevel.DEBUG, "被过滤")
        facade.close()

        lines = log_path.read_text(encoding='utf-8').splitlines()
        assert len(lines) == 1
        assert lines[0].endswith("INFO [EXPORT] 打包 [library.swf]")
        assert "library.swf" in capsys.readouterr().out

    def test_errors_go_to_stderr(self, capsys):
        OutputFacade().emit(OutputLevel.ERROR, "编译失败")
        captured = capsys.readouterr()
        assert "编译失败" in captured.err
        assert "编译失败" not in captured.out
