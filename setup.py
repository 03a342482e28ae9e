from setuptools import setup, find_packages

setup(
    name="nfc-storefront",
    version="0.1.0",
    packages=find_packages(include=["storefront", "storefront.*", "accounts", "accounts.*", "orders", "orders.*"]),
    include_package_data=True,
    package_data={
        "accounts": ["templates/accounts/*.html"],
        "orders": ["templates/orders/*.html"],
    },
    install_requires=[
        "Django>=4.2",
        "djangorestframework>=3.14",
        "django-anymail[mailgun]>=10.0",
        "django-cors-headers>=4.0",
        "whitenoise>=6.5",
        "python-dotenv>=1.0",
        "requests>=2.31",
        "stripe>=8.0",
    ],
    extras_require={
        "redis": ["redis>=4.5"],
        "test": ["pytest>=7.4", "pytest-django>=4.5"],
    },
    author="Wayne",
    author_email="support@techwithwayne.com",
    description="Storefront backend for NFC business cards: pricing, vouchers, OTP login, orders and payments.",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    url="https://techwithwayne.com",
    license="MIT",
    classifiers=[
        "Framework :: Django",
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
        "License :: OSI Approved :: MIT License"
    ],
    python_requires=">=3.10",
)
