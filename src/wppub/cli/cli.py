"""CLI entrypoint: Typer app definition and command registration"""

import typer

from wppub.cli.commands import (
    check_connection_cmd,
    convert_cmd,
    history_cmd,
    init_cmd,
    meta_cmd,
    publish_cmd,
    publish_dir_cmd,
    upload_media_cmd,
)


app = typer.Typer(name="wppub", no_args_is_help=True, help="Publish Markdown notes to WordPress")

app.command(name="publish")(publish_cmd)
app.command(name="publish-dir")(publish_dir_cmd)
app.command(name="convert")(convert_cmd)
app.command(name="meta")(meta_cmd)
app.command(name="test-connection")(check_connection_cmd)
app.command(name="upload-media")(upload_media_cmd)
app.command(name="history")(history_cmd)
app.command(name="init")(init_cmd)
