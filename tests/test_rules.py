from rewriter.rules import DEFAULT_RULES, RewriteRules, replace_text


def test_replaces_each_case_variant():
    assert replace_text('Yale University') == 'Fale University'
    assert replace_text('YALE UNIVERSITY') == 'FALE UNIVERSITY'
    assert replace_text('yale university') == 'fale university'
    assert replace_text('Welcome to Yale!') == 'Welcome to Fale!'


def test_leaves_strings_without_token():
    assert replace_text('Harvard University') == 'Harvard University'
    assert replace_text('') == ''
    assert replace_text('No references here.') == 'No references here.'


def test_replaces_every_occurrence():
    assert replace_text('Yale Yale yale') == 'Fale Fale fale'


def test_mixed_content_with_domains():
    assert replace_text('Yale and Harvard are Ivy League') == 'Fale and Harvard are Ivy League'
    assert replace_text('Contact: info@yale.edu or visit yale.edu') == 'Contact: info@fale.edu or visit fale.edu'


def test_mixed_case_is_not_a_variant():
    assert replace_text('YaLe and yAlE') == 'YaLe and yAlE'
    assert replace_text('YaLe and Yale') == 'YaLe and Fale'


def test_exempt_phrase_skips_whole_value():
    text = 'This is a test page with no Yale references.'
    assert replace_text(text) == text
    mixed = 'There are no Yale references here, except Yale itself.'
    assert replace_text(mixed) == mixed


def test_exempt_phrase_is_case_sensitive():
    assert replace_text('No Yale References at all') == 'No Fale References at all'


def test_substitute_ignores_exemption():
    assert DEFAULT_RULES.substitute('no Yale references') == 'no Fale references'


def test_for_token_builds_three_variants_in_order():
    rules = RewriteRules.for_token('Harvard', 'Parvard')
    assert rules.replacements == (
        ('HARVARD', 'PARVARD'),
        ('Harvard', 'Parvard'),
        ('harvard', 'parvard'),
    )
    assert rules.exempt_phrase is None
    assert replace_text('HARVARD harvard Harvard', rules) == 'PARVARD parvard Parvard'


def test_from_config_defaults_and_overrides():
    assert RewriteRules.from_config({}) == DEFAULT_RULES
    assert RewriteRules.from_config(None) == DEFAULT_RULES

    rules = RewriteRules.from_config({'source_token': 'Acme', 'target_token': 'Zeta', 'exempt_phrase': ''})
    assert rules.replacements[1] == ('Acme', 'Zeta')
    assert rules.exempt_phrase is None
    assert not rules.is_exempt('no Yale references')


def test_for_token_keeps_inner_capitals():
    rules = RewriteRules.for_token('McGill', 'McFill')
    assert rules.replacements == (
        ('MCGILL', 'MCFILL'),
        ('McGill', 'McFill'),
        ('mcgill', 'mcfill'),
    )
    assert replace_text('McGill University', rules) == 'McFill University'
    assert replace_text('MCGILL and mcgill', rules) == 'MCFILL and mcfill'


def test_for_token_capitalizes_lowercase_config():
    rules = RewriteRules.from_config({'source_token': 'yale', 'target_token': 'fale'})
    assert rules.replacements == DEFAULT_RULES.replacements
