from marketplace import config


def test_module_docstring_is_exposed():
    assert config.__doc__
    assert config.__doc__.strip().startswith("Configuration centrale du backend marketplace.")

def test_clean_env_strips_quotes_and_spaces():
    assert config._clean_env(" 'sk_test' ") == "sk_test"
    assert config._clean_env(None) == ""
