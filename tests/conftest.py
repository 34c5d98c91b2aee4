import pytest


SAMPLE_HTML = """<!DOCTYPE html>
<html>
<head>
  <title>Yale University Test Page</title>
  <meta charset="utf-8">
</head>
<body>
  <header>
    <h1>Welcome to Yale University</h1>
    <nav>
      <ul>
        <li><a href="https://www.yale.edu/about">About Yale</a></li>
        <li><a href="https://www.yale.edu/admissions">Yale Admissions</a></li>
        <li><a href="https://www.yale.edu/academics">Academic Programs</a></li>
      </ul>
    </nav>
  </header>
  <main>
    <section>
      <h2>About Yale</h2>
      <p>Yale University is a private Ivy League research university in New Haven, Connecticut.</p>
      <p>Yale was founded in 1701 as the Collegiate School.</p>
      <img src="https://www.yale.edu/images/logo.png" alt="Yale Logo">
    </section>
  </main>
  <footer>
    <p>Contact us at <a href="mailto:info@yale.edu">info@yale.edu</a></p>
  </footer>
</body>
</html>
"""


@pytest.fixture
def sample_html():
    return SAMPLE_HTML
