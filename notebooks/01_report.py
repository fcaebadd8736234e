#!/usr/bin/env python
# coding: utf-8

# # FEVER Claims - Exploratory Analysis and Model Comparison
#
# This notebook walks through the whole study:
# - Label balance and the verifiability/label relationship
# - Claim length, evidence and sentiment by label
# - The bag-of-words representation of the claims
# - Five classifiers compared on one fixed train/test split by macro-F1

# In[1]:


# Import required libraries
import sys
sys.path.append('..')

import pandas as pd
import numpy as np
import matplotlib.pyplot as plt
import seaborn as sns
from wordcloud import WordCloud
import warnings
warnings.filterwarnings('ignore')

# Set style
plt.style.use('seaborn-v0_8-darkgrid')
sns.set_palette('husl')

# Import project modules
from fever_ml.config import DEFAULT_DATASET, FIGURES_DIR, LABELS
from fever_ml.data_io import ClaimDataLoader
from fever_ml.eda import describe_claims, display_summary, save_figures
from fever_ml.features import LexiconSentiment, create_feature_extractor
from fever_ml.train import prepare_data
from fever_ml.models_baseline import get_estimator_specs, train_all_models
from fever_ml.evaluate import compare_results, display_evaluation, plot_confusion_matrix, plot_model_comparison

FIGURES_DIR.mkdir(parents=True, exist_ok=True)
print("Libraries loaded successfully!")


# ## 1. Load Data

# In[2]:


claims = ClaimDataLoader(DEFAULT_DATASET).load_data()
print(f"Claims: {len(claims):,}")
claims.head()


# ## 2. Derived Features and Descriptive Statistics

# In[3]:


prepared = prepare_data(claims, sentiment=LexiconSentiment(), extractor=create_feature_extractor())
featured = prepared.claims

summary = describe_claims(featured)
display_summary(summary)
save_figures(featured)


# ## 3. Word Clouds by Label

# In[4]:


fig, axes = plt.subplots(1, len(LABELS), figsize=(18, 5))

for ax, label, cmap in zip(axes, LABELS, ['Greens', 'Reds', 'Greys']):
    text = ' '.join(featured.loc[featured['label'] == label, 'claim'])
    if not text:
        ax.axis('off')
        continue
    cloud = WordCloud(width=800, height=400, background_color='white',
                      colormap=cmap, max_words=100).generate(text)
    ax.imshow(cloud, interpolation='bilinear')
    ax.set_title(label, fontsize=16)
    ax.axis('off')

plt.tight_layout()
plt.savefig(FIGURES_DIR / 'word_clouds.png', dpi=150, bbox_inches='tight')
plt.show()


# ## 4. Bag-of-Words Representation

# In[5]:


X_train = prepared.split.X_train
print(f"Predictor matrix: {prepared.design.shape[0]:,} x {prepared.design.shape[1]:,}")
print(f"Sparsity: {1 - X_train.nnz / (X_train.shape[0] * X_train.shape[1]):.2%}")

print("\nMost frequent stems in the training claims:")
for term, count in prepared.extractor.get_top_terms(X_train, top_k=15):
    print(f"  {term:20s} {count:,}")


# ## 5. Model Comparison

# In[6]:


outcomes = train_all_models(prepared.split, specs=get_estimator_specs())

for name, outcome in outcomes.items():
    display_evaluation(outcome.test, title=f"{name} - test set")
    plot_confusion_matrix(outcome.test, save_path=FIGURES_DIR / f"confusion_matrix_{name}.png")

comparison = compare_results(outcomes)
plot_model_comparison(comparison, save_path=FIGURES_DIR / 'model_comparison.png')
comparison


# ## 6. Summary

# In[7]:


print("=" * 60)
print("SUMMARY")
print("=" * 60)

print("\n1. LABELS:")
for label, count, share in zip(summary.labels.index, summary.labels['count'], summary.labels['share']):
    print(f"   - {label}: {count:,} ({share:.1%})")

print("\n2. INVARIANT:")
print(f"   - NOT ENOUGH INFO exactly when NOT VERIFIABLE: {summary.invariant.holds}")

print("\n3. MODELS (test macro-F1):")
for row in comparison.itertuples(index=False):
    score = row[2]
    shown = 'undefined' if np.isnan(score) else f"{score:.4f}"
    print(f"   - {row[0]:20s} {shown}")

print("\n" + "=" * 60)
