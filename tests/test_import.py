
def test_import_all():

    import slackinvite
    import slackinvite.cli
    import slackinvite.cli.__main__
    import slackinvite.cli.helpers
    import slackinvite.helpers
    import slackinvite.helpers.collections
    import slackinvite.macros
    import slackinvite.macros.membership
    import slackinvite.slack
    import slackinvite.slack.clients
    import slackinvite.slack.exceptions
    import slackinvite.slack.methods

    assert True


def test_version():
    import slackinvite

    assert isinstance(slackinvite.__version__, str)
    assert slackinvite.version_info[0] >= 0
